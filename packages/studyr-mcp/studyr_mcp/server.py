"""
Studyr MCP Server

Student task planning, study timer and due-date alerts exposed as MCP tools.
"""

import asyncio
import logging
import sys
from typing import Optional

from mcp.server.fastmcp import FastMCP

from studyr.errors import StudyrError

# Initialize FastMCP server
mcp = FastMCP("studyr")

logger = logging.getLogger(__name__)

# Global state
_initialized = False
_timer = None
_alerts = None
_presenter = None


class CollectingPresenter:
    """Alert presenter that keeps alerts for the next tool response."""

    def __init__(self):
        self.shown: list[dict] = []

    def _add(self, level: str, title: str, message: str) -> None:
        self.shown.append({"level": level, "title": title, "message": message})

    def show_success(self, title: str, message: str) -> None:
        self._add("success", title, message)

    def show_warning(self, title: str, message: str) -> None:
        self._add("warning", title, message)

    def show_error(self, title: str, message: str) -> None:
        self._add("error", title, message)

    def show_info(self, title: str, message: str) -> None:
        self._add("info", title, message)

    def drain(self) -> list[dict]:
        shown, self.shown = self.shown, []
        return shown


async def ensure_initialized():
    """Ensure the store is connected and the timer and alerts are wired."""
    global _initialized, _timer, _alerts, _presenter
    if _initialized:
        return

    from studyr.config import get_config
    from studyr.services import AlertDispatcher, StudySessionService, StudyTimer, TaskService
    from studyr.store import init_store

    config = get_config()
    await init_store(config)

    _presenter = CollectingPresenter()
    _alerts = AlertDispatcher(presenter=_presenter, config=config.alerts)
    _timer = StudyTimer(
        sessions=StudySessionService(),
        tasks=TaskService(),
        config=config.timer,
    )

    _initialized = True
    logger.info("Studyr initialized")


def _task_service():
    from studyr.services import TaskService

    return TaskService(on_complete=_alerts.show_completion_celebration)


def _timer_response() -> dict:
    from studyr.services.timer import format_time

    state = _timer.get_state()
    result = state.to_dict()
    result["display"] = format_time(state.time_left)
    return result


# =============================================================================
# TASK TOOLS
# =============================================================================

@mcp.tool()
async def task_list(
    filter: str = "all",
    query: Optional[str] = None,
    sort_by: str = "dueDate",
    course_id: Optional[str] = None,
) -> dict:
    """
    List tasks with optional filters.

    Args:
        filter: all, active or completed
        query: Search text matched against title and description
        sort_by: dueDate, priority, created or smartPriority
        course_id: Only tasks for this course

    Returns:
        List of tasks with their urgency
    """
    await ensure_initialized()

    try:
        tasks = await _task_service().list(
            filter=filter,
            query=query,
            sort_by=sort_by,
            course_id=course_id,
        )
    except StudyrError as e:
        return {"error": str(e)}

    return {
        "tasks": [{**t.to_dict(), "urgency": _alerts.get_task_urgency(t)} for t in tasks],
        "count": len(tasks),
    }


@mcp.tool()
async def task_create(
    title: str,
    description: Optional[str] = None,
    status: Optional[str] = None,
    priority: str = "medium",
    category: Optional[str] = None,
    due_date: Optional[str] = None,
    course_id: Optional[str] = None,
    task_type: str = "other",
    estimated_time: Optional[int] = None,
    difficulty: str = "medium",
    weight: Optional[float] = None,
) -> dict:
    """
    Create a new task. Its smart priority is computed immediately.

    Args:
        title: Task title
        description: Task description
        status: to-do, in-progress or completed (default to-do)
        priority: low, medium or high
        category: Free-form label
        due_date: ISO 8601 deadline
        course_id: Related course ID
        task_type: assignment, exam, project, reading, study or other
        estimated_time: Estimate in minutes
        difficulty: easy, medium or hard
        weight: Percent of the final course grade

    Returns:
        Created task details
    """
    await ensure_initialized()

    try:
        task = await _task_service().create(
            title=title,
            description=description,
            status=status,
            priority=priority,
            category=category,
            due_date=due_date,
            course_id=course_id,
            task_type=task_type,
            estimated_time=estimated_time,
            difficulty=difficulty,
            weight=weight,
        )
    except StudyrError as e:
        return {"error": str(e)}

    return task.to_dict()


@mcp.tool()
async def task_show(task_id: str) -> dict:
    """
    Get detailed information about a task.

    Args:
        task_id: Task ID

    Returns:
        Full task details
    """
    await ensure_initialized()

    task = await _task_service().get(task_id)
    if not task:
        return {"error": f"Task not found: {task_id}"}

    return {**task.to_dict(), "urgency": _alerts.get_task_urgency(task)}


@mcp.tool()
async def task_update(
    task_id: str,
    title: Optional[str] = None,
    description: Optional[str] = None,
    completed: Optional[bool] = None,
    priority: Optional[str] = None,
    category: Optional[str] = None,
    due_date: Optional[str] = None,
    course_id: Optional[str] = None,
    task_type: Optional[str] = None,
    estimated_time: Optional[int] = None,
    difficulty: Optional[str] = None,
    grade: Optional[float] = None,
    weight: Optional[float] = None,
) -> dict:
    """
    Update an existing task. Only the given fields change.

    Args:
        task_id: Task ID
        title: New title
        description: New description
        completed: Mark completed or reopen
        priority: New priority
        category: New category
        due_date: New ISO 8601 deadline
        course_id: New course ID
        task_type: New task type
        estimated_time: New estimate in minutes
        difficulty: New difficulty
        grade: Grade received (0-100)
        weight: New weight

    Returns:
        Updated task details, plus any celebration shown
    """
    await ensure_initialized()

    fields = {
        "title": title,
        "description": description,
        "completed": completed,
        "priority": priority,
        "category": category,
        "due_date": due_date,
        "course_id": course_id,
        "task_type": task_type,
        "estimated_time": estimated_time,
        "difficulty": difficulty,
        "grade": grade,
        "weight": weight,
    }
    updates = {name: value for name, value in fields.items() if value is not None}

    try:
        task = await _task_service().update(task_id, **updates)
    except StudyrError as e:
        return {"error": str(e)}

    return {**task.to_dict(), "alerts": _presenter.drain()}


@mcp.tool()
async def task_set_status(task_id: str, status: str) -> dict:
    """
    Move a task to another board column.

    Args:
        task_id: Task ID
        status: to-do, in-progress or completed

    Returns:
        Updated task details, plus any celebration shown
    """
    await ensure_initialized()

    try:
        task = await _task_service().update_status(task_id, status)
    except StudyrError as e:
        return {"error": str(e)}

    return {**task.to_dict(), "alerts": _presenter.drain()}


@mcp.tool()
async def task_delete(task_id: str) -> dict:
    """
    Delete a task.

    Args:
        task_id: Task ID

    Returns:
        Whether a task was removed
    """
    await ensure_initialized()

    try:
        deleted = await _task_service().delete(task_id)
    except StudyrError as e:
        return {"error": str(e)}

    return {"deleted": deleted, "task_id": task_id}


@mcp.tool()
async def task_recalculate() -> dict:
    """
    Re-score every open task against the current date.

    Returns:
        Number of tasks re-scored
    """
    await ensure_initialized()

    try:
        count = await _task_service().recalculate_all()
    except StudyrError as e:
        return {"error": str(e)}

    return {"recalculated": count}


@mcp.tool()
async def task_board() -> dict:
    """
    Tasks grouped into board columns by status.

    Returns:
        Mapping of status to tasks
    """
    await ensure_initialized()

    try:
        columns = await _task_service().board()
    except StudyrError as e:
        return {"error": str(e)}

    return {status: [t.to_dict() for t in tasks] for status, tasks in columns.items()}


@mcp.tool()
async def task_stats() -> dict:
    """
    Dashboard counts: total, completed, in progress, to do, overdue, due today.
    """
    await ensure_initialized()

    try:
        return await _task_service().dashboard_stats()
    except StudyrError as e:
        return {"error": str(e)}


# =============================================================================
# RESOURCE TOOLS
# =============================================================================

@mcp.tool()
async def resource_add(
    task_id: str,
    type: str,
    title: str,
    url: Optional[str] = None,
    description: Optional[str] = None,
) -> dict:
    """
    Attach a study resource to a task.

    Args:
        task_id: Task ID
        type: link, file, note, video or document
        title: Resource title
        url: Optional link
        description: Optional notes

    Returns:
        Updated task details
    """
    await ensure_initialized()

    try:
        task = await _task_service().add_resource(task_id, type, title, url=url, description=description)
    except StudyrError as e:
        return {"error": str(e)}

    return task.to_dict()


@mcp.tool()
async def resource_remove(task_id: str, resource_id: str) -> dict:
    """
    Detach a resource from a task.

    Args:
        task_id: Task ID
        resource_id: Resource ID

    Returns:
        Updated task details
    """
    await ensure_initialized()

    try:
        task = await _task_service().remove_resource(task_id, resource_id)
    except StudyrError as e:
        return {"error": str(e)}

    return task.to_dict()


# =============================================================================
# TIMER TOOLS
# =============================================================================

@mcp.tool()
async def timer_start(task_id: Optional[str] = None) -> dict:
    """
    Start or resume the study timer.

    Args:
        task_id: Task to log the session against (omit for general study)

    Returns:
        Timer state
    """
    await ensure_initialized()
    _timer.start(task_id)
    return _timer_response()


@mcp.tool()
async def timer_pause() -> dict:
    """Pause the running timer."""
    await ensure_initialized()
    _timer.pause()
    return _timer_response()


@mcp.tool()
async def timer_stop() -> dict:
    """
    Stop the timer. Runs of at least a minute are saved.

    Returns:
        Timer state after the reset
    """
    await ensure_initialized()
    _timer.stop()
    await _timer.drain()
    return _timer_response()


@mcp.tool()
async def timer_state() -> dict:
    """Current timer state."""
    await ensure_initialized()
    return _timer_response()


@mcp.tool()
async def timer_set_duration(minutes: int) -> dict:
    """
    Set the countdown length while the timer is idle.

    Args:
        minutes: New length in minutes

    Returns:
        Timer state
    """
    await ensure_initialized()

    try:
        _timer.set_duration(minutes)
    except StudyrError as e:
        return {"error": str(e)}

    return _timer_response()


@mcp.tool()
async def timer_switch(session_type: str) -> dict:
    """
    Switch the idle timer between focus and break.

    Args:
        session_type: focus or break

    Returns:
        Timer state
    """
    await ensure_initialized()

    try:
        _timer.switch_session_type(session_type)
    except StudyrError as e:
        return {"error": str(e)}

    return _timer_response()


@mcp.tool()
async def study_stats(days: int = 7) -> dict:
    """
    Study statistics over a lookback window.

    Args:
        days: Window in days (default 7)

    Returns:
        Sessions, minutes, average length, today's sessions and streak
    """
    await ensure_initialized()
    from studyr.services import StudySessionService

    try:
        stats = await StudySessionService().get_stats(days=days)
    except StudyrError as e:
        return {"error": str(e)}

    return stats.to_dict()


# =============================================================================
# ALERT TOOLS
# =============================================================================

@mcp.tool()
async def alerts_check() -> dict:
    """
    Check tasks for overdue, due-today and due-soon alerts.

    At most one alert is shown per check; the due-today alert only
    once per day.

    Returns:
        The alert kind shown (or null) and its content
    """
    await ensure_initialized()

    try:
        tasks = await _task_service().load()
    except StudyrError as e:
        return {"error": str(e)}

    kind = _alerts.check_and_show_alerts(tasks)
    return {"alert": kind, "alerts": _presenter.drain()}


@mcp.tool()
async def alerts_reset() -> dict:
    """Allow the due-today alert to be shown again."""
    await ensure_initialized()
    _alerts.reset_daily_flags()
    return {"reset": True}


# =============================================================================
# COURSE TOOLS
# =============================================================================

@mcp.tool()
async def course_add(
    code: str,
    name: str,
    professor: Optional[str] = None,
    credits: Optional[float] = None,
    target_grade: Optional[float] = None,
) -> dict:
    """
    Add a course.

    Args:
        code: Course code, e.g. CS101
        name: Course name
        professor: Instructor
        credits: Credit hours
        target_grade: Grade goal (0-100)

    Returns:
        Created course
    """
    await ensure_initialized()
    from studyr.services import CourseService

    try:
        course = await CourseService().add(
            code=code,
            name=name,
            professor=professor,
            credits=credits,
            target_grade=target_grade,
        )
    except StudyrError as e:
        return {"error": str(e)}

    return course.to_dict()


@mcp.tool()
async def course_list() -> dict:
    """List courses."""
    await ensure_initialized()
    from studyr.services import CourseService

    try:
        courses = await CourseService().list()
    except StudyrError as e:
        return {"error": str(e)}

    return {"courses": [c.to_dict() for c in courses], "count": len(courses)}


@mcp.tool()
async def course_delete(course_id: str) -> dict:
    """
    Delete a course. Tasks keep their course reference.

    Args:
        course_id: Course ID
    """
    await ensure_initialized()
    from studyr.services import CourseService

    try:
        deleted = await CourseService().delete(course_id)
    except StudyrError as e:
        return {"error": str(e)}

    return {"deleted": deleted, "course_id": course_id}


# =============================================================================
# PLANNING TOOLS
# =============================================================================

# Import and register planning tools
from studyr_mcp.tools.planning import register_planning_tools
register_planning_tools(mcp)


# =============================================================================
# UTILITY TOOLS
# =============================================================================

@mcp.tool()
async def studyr_health() -> dict:
    """
    Check store connectivity.

    Returns:
        Health status and the store backend in use
    """
    await ensure_initialized()
    from studyr.store import get_store

    store = get_store()

    try:
        await store.get("tasks")
        connected = True
    except StudyrError as e:
        connected = False
        logger.error(f"Health check failed: {e}")

    return {
        "status": "healthy" if connected else "unhealthy",
        "store": store.backend,
        "timer": _timer.get_state().status,
    }


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

def create_server() -> FastMCP:
    """Return the configured MCP server with every tool registered."""
    return mcp


def configure_logging(level: str) -> None:
    """Log to stderr; stdout carries the MCP transport."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main():
    """Main entry point for studyr-mcp command."""
    import argparse

    from studyr.config import get_config

    parser = argparse.ArgumentParser(description="Studyr MCP Server")
    parser.add_argument("command", nargs="?", default="serve", help="Command to run (serve, recalculate)")
    args = parser.parse_args()

    configure_logging(get_config().log_level)

    if args.command == "recalculate":
        async def do_recalculate():
            await ensure_initialized()
            count = await _task_service().recalculate_all()
            print(f"Recalculated {count} tasks")

        asyncio.run(do_recalculate())
    else:
        # Start MCP server
        mcp.run()


if __name__ == "__main__":
    main()
