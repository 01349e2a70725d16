"""
Tests for Task Service.
"""

import asyncio
import pytest
import tempfile
from datetime import timedelta
from pathlib import Path


@pytest.fixture
def task_service(memory_store, clock):
    """Create a TaskService over an in-memory store."""
    from studyr.services.tasks import TaskService

    return TaskService(store=memory_store, clock=clock)


@pytest.fixture
async def task_service_with_db(clock):
    """Create a TaskService with a temporary SQLite database."""
    from studyr.services.tasks import TaskService
    from studyr.store.sqlite import SQLiteStore

    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        store = SQLiteStore(str(db_path))
        await store.connect()

        service = TaskService(store=store, clock=clock)
        yield service

        await store.close()


class TestTaskServiceCreate:
    """Tests for TaskService.create()."""

    @pytest.mark.asyncio
    async def test_create_task_minimal(self, task_service):
        """Test creating a task with minimal data."""
        task = await task_service.create(title="Read chapter 3")

        assert task.title == "Read chapter 3"
        assert task.status == "to-do"
        assert task.completed is False
        assert task.priority == "medium"
        assert task.id is not None
        assert task.smart_priority == 17

    @pytest.mark.asyncio
    async def test_create_task_full(self, task_service, sample_task_data, clock):
        """Test creating a task with all fields."""
        task = await task_service.create(
            **sample_task_data,
            due_date=clock.now + timedelta(days=2),
            course_id="course-1",
            estimated_time=90,
            category="math",
        )

        assert task.description == "Graph theory exercises"
        assert task.task_type == "assignment"
        assert task.course_id == "course-1"
        assert task.estimated_time == 90
        assert task.urgency_score == 35
        # (20 + 10 + 2) * 1.2
        assert task.importance_score == pytest.approx(38.4)
        assert task.smart_priority == pytest.approx(73.4)

    @pytest.mark.asyncio
    async def test_create_completed_task(self, task_service):
        """Test that status and completed agree on create."""
        by_flag = await task_service.create(title="Done", completed=True)
        by_status = await task_service.create(title="Done too", status="completed")

        assert by_flag.status == "completed"
        assert by_status.completed is True

    @pytest.mark.asyncio
    async def test_create_parses_iso_due_date(self, task_service):
        """Test ISO strings are accepted for due dates."""
        task = await task_service.create(title="Quiz", due_date="2024-03-14T09:00:00")

        assert task.due_date.day == 14
        assert task.urgency_score == 45

    @pytest.mark.asyncio
    async def test_create_task_empty_title(self, task_service):
        """Test that an empty title is rejected."""
        from studyr.errors import ValidationError

        with pytest.raises(ValidationError):
            await task_service.create(title="   ")

    @pytest.mark.asyncio
    async def test_create_task_invalid_status(self, task_service):
        """Test that invalid status raises error."""
        with pytest.raises(ValueError) as exc:
            await task_service.create(title="Test", status="done")

        assert "Invalid status" in str(exc.value)

    @pytest.mark.asyncio
    async def test_create_task_invalid_priority(self, task_service):
        """Test that invalid priority raises error."""
        with pytest.raises(ValueError) as exc:
            await task_service.create(title="Test", priority="super-high")

        assert "Invalid priority" in str(exc.value)

    @pytest.mark.asyncio
    async def test_create_task_invalid_due_date(self, task_service):
        """Test that an unparseable due date is a validation error."""
        from studyr.errors import ValidationError

        with pytest.raises(ValidationError):
            await task_service.create(title="Test", due_date="next tuesday")

    @pytest.mark.asyncio
    async def test_create_persists_camel_case(self, task_service, memory_store):
        """Test the stored record shape."""
        await task_service.create(title="Essay", task_type="project")

        records = await memory_store.get_json("tasks")

        assert len(records) == 1
        assert records[0]["taskType"] == "project"
        assert "smartPriority" in records[0]


class TestTaskServiceGet:
    """Tests for TaskService.get() and load()."""

    @pytest.mark.asyncio
    async def test_get_existing_task(self, task_service):
        """Test getting an existing task."""
        created = await task_service.create(title="Test task")
        fetched = await task_service.get(created.id)

        assert fetched is not None
        assert fetched.id == created.id
        assert fetched.title == "Test task"

    @pytest.mark.asyncio
    async def test_get_nonexistent_task(self, task_service):
        """Test getting a task that doesn't exist."""
        assert await task_service.get("nonexistent-id") is None

    @pytest.mark.asyncio
    async def test_load_empty(self, task_service):
        """Test that nothing stored means no tasks."""
        assert await task_service.load() == []

    @pytest.mark.asyncio
    async def test_load_scores_legacy_records(self, memory_store, clock):
        """Test that records without a score are scored on load."""
        from studyr.services.tasks import TaskService

        await memory_store.set_json("tasks", [{"id": "old", "title": "Legacy", "completed": False}])
        service = TaskService(store=memory_store, clock=clock)

        tasks = await service.load()

        assert tasks[0].status == "to-do"
        assert tasks[0].smart_priority == 17

    @pytest.mark.asyncio
    async def test_load_corrupt_store(self, memory_store):
        """Test that a corrupt collection raises a read error."""
        from studyr.errors import StorageReadError
        from studyr.services.tasks import TaskService

        await memory_store.set("tasks", "{not json")

        with pytest.raises(StorageReadError):
            await TaskService(store=memory_store).load()

    @pytest.mark.asyncio
    async def test_load_unparsable_due_date(self, memory_store):
        """Test that a record with a bad date raises a read error."""
        from studyr.errors import StorageReadError
        from studyr.services.tasks import TaskService

        await memory_store.set_json("tasks", [{"id": "1", "title": "x", "dueDate": "garbage"}])

        with pytest.raises(StorageReadError) as exc:
            await TaskService(store=memory_store).load()

        assert exc.value.key == "tasks"

    @pytest.mark.asyncio
    async def test_load_collection_not_a_list(self, memory_store):
        """Test that a JSON object in place of the list raises a read error."""
        from studyr.errors import StorageReadError
        from studyr.services.tasks import TaskService

        await memory_store.set_json("tasks", {"id": "1"})

        with pytest.raises(StorageReadError):
            await TaskService(store=memory_store).load()

    @pytest.mark.asyncio
    async def test_load_rescores_partial_scores(self, memory_store, clock):
        """Test that a record missing urgency and importance is fully re-scored."""
        from studyr.services.tasks import TaskService

        await memory_store.set_json(
            "tasks", [{"id": "old", "title": "Legacy", "completed": False, "smartPriority": 99}]
        )

        task = (await TaskService(store=memory_store, clock=clock).load())[0]

        assert task.urgency_score == 0
        assert task.importance_score == 17
        assert task.smart_priority == 17


class TestTaskServiceUpdate:
    """Tests for TaskService.update()."""

    @pytest.mark.asyncio
    async def test_update_title(self, task_service, clock):
        """Test updating task title."""
        created = await task_service.create(title="Original")
        clock.advance(minutes=5)

        updated = await task_service.update(created.id, title="Updated")

        assert updated.title == "Updated"
        assert updated.updated_at == clock.now
        assert (await task_service.get(created.id)).title == "Updated"

    @pytest.mark.asyncio
    async def test_update_rescores_on_score_fields(self, task_service):
        """Test that changing priority recomputes the score."""
        created = await task_service.create(title="Lab report")
        updated = await task_service.update(created.id, priority="high")

        assert updated.importance_score == 25
        assert updated.smart_priority == 25

    @pytest.mark.asyncio
    async def test_update_keeps_score_for_other_fields(self, task_service, clock):
        """Test that non-score edits leave the score alone."""
        created = await task_service.create(title="Essay", due_date=clock.now + timedelta(days=10))
        clock.advance(days=9)

        updated = await task_service.update(created.id, description="Outline first")

        assert updated.urgency_score == 15

    @pytest.mark.asyncio
    async def test_update_completed_moves_status(self, task_service):
        """Test completed=True moves the task to the completed column."""
        created = await task_service.create(title="Quiz prep", status="in-progress")

        done = await task_service.update(created.id, completed=True)
        assert done.status == "completed"

        reopened = await task_service.update(created.id, completed=False)
        assert reopened.status == "to-do"

    @pytest.mark.asyncio
    async def test_update_status_wins_over_completed(self, task_service):
        """Test status is authoritative when both are given."""
        created = await task_service.create(title="Both")

        updated = await task_service.update(created.id, status="in-progress", completed=True)

        assert updated.status == "in-progress"
        assert updated.completed is False

    @pytest.mark.asyncio
    async def test_update_status(self, task_service):
        """Test moving between columns."""
        created = await task_service.create(title="Move me")

        updated = await task_service.update_status(created.id, "completed")

        assert updated.completed is True

    @pytest.mark.asyncio
    async def test_update_missing_task(self, task_service):
        """Test updating a task that doesn't exist."""
        from studyr.errors import NotFoundError

        with pytest.raises(NotFoundError) as exc:
            await task_service.update("nope", title="x")

        assert "Task not found: nope" in str(exc.value)

    @pytest.mark.asyncio
    async def test_update_unknown_field(self, task_service):
        """Test that unknown fields are rejected."""
        from studyr.errors import ValidationError

        created = await task_service.create(title="Test")

        with pytest.raises(ValidationError):
            await task_service.update(created.id, smart_priority=100)

    @pytest.mark.asyncio
    async def test_update_grade_range(self, task_service):
        """Test grades outside 0-100 are rejected."""
        from studyr.errors import ValidationError

        created = await task_service.create(title="Graded")

        with pytest.raises(ValidationError):
            await task_service.update(created.id, grade=101)


class TestTaskServiceCompletion:
    """Tests for completion events."""

    @pytest.mark.asyncio
    async def test_completion_event_fires_once(self, memory_store, clock):
        """Test the callback fires on the not-completed to completed edge only."""
        from studyr.services.tasks import TaskService

        completed = []
        service = TaskService(store=memory_store, on_complete=completed.append, clock=clock)

        task = await service.create(title="Celebrate")
        await service.complete(task.id)
        await service.update(task.id, description="still done")
        await service.update_status(task.id, "completed")

        assert [t.id for t in completed] == [task.id]

    @pytest.mark.asyncio
    async def test_completion_callback_errors_are_contained(self, memory_store):
        """Test a failing callback does not fail the update."""
        from studyr.services.tasks import TaskService

        def explode(task):
            raise RuntimeError("boom")

        service = TaskService(store=memory_store, on_complete=explode)
        task = await service.create(title="Finish")

        updated = await service.complete(task.id)

        assert updated.completed is True


class TestTaskServiceDelete:
    """Tests for TaskService.delete()."""

    @pytest.mark.asyncio
    async def test_delete_task(self, task_service):
        """Test deleting a task."""
        created = await task_service.create(title="To delete")

        assert await task_service.delete(created.id) is True
        assert await task_service.get(created.id) is None

    @pytest.mark.asyncio
    async def test_delete_missing_task(self, task_service):
        """Test deleting an unknown id is a no-op."""
        await task_service.create(title="Keep")

        assert await task_service.delete("missing") is False
        assert len(await task_service.load()) == 1


class TestTaskServiceResources:
    """Tests for attached resources."""

    @pytest.mark.asyncio
    async def test_add_and_remove_resource(self, task_service, clock):
        """Test attaching then detaching a resource."""
        task = await task_service.create(title="Project")

        task = await task_service.add_resource(task.id, "link", "Rubric", url="https://example.org")
        resource = task.resources[0]

        assert resource.attached_at == clock.now
        assert resource.url == "https://example.org"

        task = await task_service.remove_resource(task.id, resource.id)
        assert task.resources == []

    @pytest.mark.asyncio
    async def test_resources_keep_insertion_order(self, task_service):
        """Test resources list in the order attached."""
        task = await task_service.create(title="Reading")
        await task_service.add_resource(task.id, "note", "First")
        await task_service.add_resource(task.id, "video", "Second")

        fetched = await task_service.get(task.id)

        assert [r.title for r in fetched.resources] == ["First", "Second"]

    @pytest.mark.asyncio
    async def test_remove_missing_resource(self, task_service):
        """Test removing an unknown resource."""
        from studyr.errors import NotFoundError

        task = await task_service.create(title="Project")

        with pytest.raises(NotFoundError):
            await task_service.remove_resource(task.id, "missing")

    @pytest.mark.asyncio
    async def test_invalid_resource_type(self, task_service):
        """Test resource type validation."""
        from studyr.errors import ValidationError

        task = await task_service.create(title="Project")

        with pytest.raises(ValidationError):
            await task_service.add_resource(task.id, "podcast", "Episode 1")


class TestTaskServiceStudySessions:
    """Tests for study-session bookkeeping on tasks."""

    @pytest.mark.asyncio
    async def test_actual_time_sums_sessions(self, task_service):
        """Test actual_time follows the logged sessions."""
        from studyr.models.session import StudySession

        task = await task_service.create(title="Revise")
        await task_service.add_study_session(task.id, StudySession(task_id=task.id, duration=25))
        task = await task_service.add_study_session(task.id, StudySession(task_id=task.id, duration=10))

        assert task.actual_time == 35
        assert len(task.study_sessions) == 2

    @pytest.mark.asyncio
    async def test_same_session_not_counted_twice(self, task_service):
        """Test that re-adding a session replaces it."""
        from studyr.models.session import StudySession

        task = await task_service.create(title="Revise")
        session = StudySession(task_id=task.id, duration=25)

        await task_service.add_study_session(task.id, session)
        task = await task_service.add_study_session(task.id, session)

        assert task.actual_time == 25
        assert len(task.study_sessions) == 1


class TestTaskServiceRecalculate:
    """Tests for TaskService.recalculate_all()."""

    @pytest.mark.asyncio
    async def test_recalculate_follows_clock(self, task_service, clock):
        """Test urgency rises as the due date approaches."""
        task = await task_service.create(title="Paper", due_date=clock.now + timedelta(days=10))
        assert task.urgency_score == 15

        clock.advance(days=9, hours=12)
        count = await task_service.recalculate_all()

        fetched = await task_service.get(task.id)
        assert count == 1
        assert fetched.urgency_score == 45

    @pytest.mark.asyncio
    async def test_recalculate_skips_completed(self, task_service, clock):
        """Test completed tasks keep their last score."""
        task = await task_service.create(title="Done", due_date=clock.now + timedelta(days=10))
        await task_service.complete(task.id)

        clock.advance(days=11)
        count = await task_service.recalculate_all()

        fetched = await task_service.get(task.id)
        assert count == 0
        assert fetched.urgency_score == 15

    @pytest.mark.asyncio
    async def test_recalculate_is_idempotent(self, task_service, clock):
        """Test two passes at the same instant leave every score unchanged."""
        await task_service.create(title="Overdue project", task_type="project", due_date=clock.now - timedelta(hours=2))
        await task_service.create(
            title="Exam", priority="high", task_type="exam", difficulty="hard",
            weight=50, due_date=clock.now + timedelta(hours=12),
        )
        await task_service.create(title="Essay", weight=20, due_date=clock.now + timedelta(days=5))
        await task_service.create(title="Someday", priority="low", difficulty="easy")

        def scores(tasks):
            return {t.id: (t.urgency_score, t.importance_score, t.smart_priority) for t in tasks}

        await task_service.recalculate_all()
        first = scores(await task_service.load())
        await task_service.recalculate_all()
        second = scores(await task_service.load())

        assert len(first) == 4
        assert first == second


class TestTaskServiceList:
    """Tests for TaskService.list(), board() and dashboard_stats()."""

    @pytest.mark.asyncio
    async def test_list_filters(self, task_service):
        """Test active and completed filters."""
        await task_service.create(title="Open")
        await task_service.create(title="Closed", completed=True)

        active = await task_service.list(filter="active")
        completed = await task_service.list(filter="completed")

        assert [t.title for t in active] == ["Open"]
        assert [t.title for t in completed] == ["Closed"]

    @pytest.mark.asyncio
    async def test_list_query(self, task_service):
        """Test case-insensitive search on title and description."""
        await task_service.create(title="Calculus homework")
        await task_service.create(title="Essay", description="About calculus history")
        await task_service.create(title="Lab")

        found = await task_service.list(query="CALCULUS")

        assert {t.title for t in found} == {"Calculus homework", "Essay"}

    @pytest.mark.asyncio
    async def test_list_sort_by_due_date(self, task_service, clock):
        """Test soonest first, undated last."""
        await task_service.create(title="Later", due_date=clock.now + timedelta(days=5))
        await task_service.create(title="Undated")
        await task_service.create(title="Sooner", due_date=clock.now + timedelta(days=1))

        tasks = await task_service.list(sort_by="dueDate")

        assert [t.title for t in tasks] == ["Sooner", "Later", "Undated"]

    @pytest.mark.asyncio
    async def test_list_sort_by_smart_priority(self, task_service, clock):
        """Test highest score first."""
        await task_service.create(title="Low", priority="low")
        await task_service.create(title="Urgent", due_date=clock.now - timedelta(hours=1))

        tasks = await task_service.list(sort_by="smartPriority")

        assert tasks[0].title == "Urgent"

    @pytest.mark.asyncio
    async def test_list_by_course(self, task_service):
        """Test filtering by course."""
        await task_service.create(title="CS", course_id="cs101")
        await task_service.create(title="Math", course_id="math202")

        tasks = await task_service.list(course_id="cs101")

        assert [t.title for t in tasks] == ["CS"]

    @pytest.mark.asyncio
    async def test_board_columns(self, task_service):
        """Test tasks grouped by status."""
        await task_service.create(title="A")
        await task_service.create(title="B", status="in-progress")
        await task_service.create(title="C", status="completed")

        board = await task_service.board()

        assert list(board) == ["to-do", "in-progress", "completed"]
        assert [t.title for t in board["in-progress"]] == ["B"]

    @pytest.mark.asyncio
    async def test_dashboard_stats(self, task_service, clock):
        """Test dashboard counts."""
        await task_service.create(title="Overdue", due_date=clock.now - timedelta(hours=2))
        await task_service.create(title="Tonight", due_date=clock.now + timedelta(hours=8))
        await task_service.create(title="Doing", status="in-progress")
        await task_service.create(title="Done", completed=True)

        stats = await task_service.dashboard_stats()

        assert stats["total"] == 4
        assert stats["completed"] == 1
        assert stats["in_progress"] == 1
        assert stats["to_do"] == 2
        assert stats["overdue"] == 1
        # Overdue task was due earlier today, so it counts too
        assert stats["due_today"] == 2


class TestTaskServiceConcurrency:
    """Tests for concurrent writers."""

    @pytest.mark.asyncio
    async def test_concurrent_creates_are_not_lost(self, task_service_with_db):
        """Test interleaved creates all land in the collection."""
        service = task_service_with_db

        await asyncio.gather(*(service.create(title=f"Task {i}") for i in range(20)))

        tasks = await service.load()
        assert len(tasks) == 20

    @pytest.mark.asyncio
    async def test_concurrent_session_and_update(self, task_service_with_db):
        """Test a session append and an edit do not overwrite each other."""
        from studyr.models.session import StudySession

        service = task_service_with_db
        task = await service.create(title="Shared")

        await asyncio.gather(
            service.add_study_session(task.id, StudySession(task_id=task.id, duration=25)),
            service.update(task.id, description="edited"),
        )

        fetched = await service.get(task.id)
        assert fetched.description == "edited"
        assert fetched.actual_time == 25
