"""
Planning and discovery tools for Studyr.

Tools that help decide what to study next and find the right tool.
"""

import random


def register_planning_tools(mcp):
    """Register planning and discovery tools."""

    @mcp.tool()
    async def study_plan(limit: int = 5, course_id: str | None = None) -> dict:
        """
        What to work on next.

        Open tasks ranked by smart priority, each with its urgency,
        plus a line of motivation for the day.

        Args:
            limit: Maximum tasks (default 5)
            course_id: Only tasks for this course

        Returns:
            Ranked tasks and a motivation message
        """
        from studyr.services import AlertDispatcher, TaskService
        from studyr.services.alerts import MOTIVATIONS
        from studyr.services.scoring import rank_tasks

        alerts = AlertDispatcher()
        tasks = await TaskService().list(filter="active", course_id=course_id)
        ranked = rank_tasks(tasks)[:limit]

        return {
            "plan": [
                {
                    "id": t.id,
                    "title": t.title,
                    "smartPriority": t.smart_priority,
                    "dueDate": t.due_date.isoformat() if t.due_date else None,
                    "urgency": alerts.get_task_urgency(t),
                    "estimatedTime": t.estimated_time,
                }
                for t in ranked
            ],
            "count": len(ranked),
            "motivation": random.choice(MOTIVATIONS),
        }

    @mcp.tool()
    async def studyr_tools_for(intent: str) -> dict:
        """
        Discover studyr tools by describing what you want to accomplish.

        Args:
            intent: Describe what you want to do (e.g., "add my exam",
                   "start studying", "what is due this week")

        Returns:
            Recommended tools and example usage
        """
        intent_lower = intent.lower()

        recommendations = []

        if any(word in intent_lower for word in ["task", "assignment", "exam", "homework", "add", "create"]):
            recommendations.append({
                "category": "Tasks",
                "tools": ["task_create", "task_update", "task_set_status", "task_list"],
                "example": "task_create(title='Midterm', task_type='exam', due_date='2026-11-02T09:00')",
            })

        if any(word in intent_lower for word in ["study", "focus", "timer", "pomodoro", "break"]):
            recommendations.append({
                "category": "Study Timer",
                "tools": ["timer_start", "timer_pause", "timer_stop", "timer_state", "study_stats"],
                "example": "timer_start(task_id='...')",
            })

        if any(word in intent_lower for word in ["due", "overdue", "deadline", "week", "today", "next"]):
            recommendations.append({
                "category": "Deadlines",
                "tools": ["alerts_check", "study_plan", "task_stats"],
                "example": "study_plan(limit=5)",
            })

        if any(word in intent_lower for word in ["course", "class", "grade", "professor"]):
            recommendations.append({
                "category": "Courses",
                "tools": ["course_add", "course_list", "task_list"],
                "example": "course_add(code='CS101', name='Introduction to Programming')",
            })

        if any(word in intent_lower for word in ["link", "resource", "note", "video", "file"]):
            recommendations.append({
                "category": "Resources",
                "tools": ["resource_add", "resource_remove"],
                "example": "resource_add(task_id='...', type='link', title='Lecture notes', url='...')",
            })

        if not recommendations:
            recommendations.append({
                "category": "Getting Started",
                "tools": ["study_plan", "studyr_health", "task_list"],
                "example": "study_plan() - See what to work on next",
            })

        return {
            "intent": intent,
            "recommendations": recommendations,
        }
