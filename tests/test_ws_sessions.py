import json
import uuid
from unittest.mock import MagicMock

import pytest
from fastapi import WebSocketDisconnect
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from starlette.websockets import WebSocketState

from proofbench.api.v1.user.learning import video_comments_ws, video_watch_ws
from proofbench.core.security import SecurityService
from proofbench.core.ws_manager import video_comments_room, ws_manager
from proofbench.db.models.database import VideoComments, VideoProgress


class FakeSocket:
    """Scripted client: replays `messages`, then disconnects."""

    def __init__(self, messages=(), token=None):
        self.incoming = [m if isinstance(m, str) else json.dumps(m) for m in messages]
        self.sent = []
        self.closed_with = None
        self.client_state = WebSocketState.CONNECTING
        self.query_params = {"token": token} if token else {}
        self.cookies = {}
        self.headers = {}

    async def accept(self):
        self.client_state = WebSocketState.CONNECTED

    async def receive_text(self):
        if not self.incoming:
            raise WebSocketDisconnect(code=1000)
        return self.incoming.pop(0)

    async def send_json(self, payload):
        self.sent.append(payload)

    async def close(self, code=1000):
        self.closed_with = code
        self.client_state = WebSocketState.DISCONNECTED

    def types(self):
        return [m.get("type") for m in self.sent if "type" in m]

    def errors(self):
        return [m["error"] for m in self.sent if "error" in m]


@pytest.fixture
def scheduler(monkeypatch, session_factory):
    """Sockets talk to the test database, timers go to a mock scheduler."""
    for module in (
        "proofbench.api.v1.user.learning",
        "proofbench.core.deps",
        "proofbench.services.user.progress_tracker",
    ):
        monkeypatch.setattr(f"{module}.AsyncSessionLocal", session_factory)

    fake = MagicMock()
    monkeypatch.setattr("proofbench.core.scheduler.scheduler", fake)
    return fake


async def _token(profile):
    return await SecurityService().create_access_token(str(profile.id))


# ==========================
# 🎬 WATCH SESSION
# ==========================


async def test_watch_session_tracks_and_saves_on_disconnect(
    db, scheduler, student, admin, make_course
):
    _, videos = await make_course(admin)
    video = videos[0]
    ws = FakeSocket(
        [
            {"type": "position", "position": 40, "duration": 100},
            {"type": "position", "position": "soon"},
            "not json",
        ],
        token=await _token(student),
    )

    await video_watch_ws(ws, video.id)

    started = ws.sent[0]
    assert started["type"] == "session_started"
    assert started["state"] == "untouched"

    job_id = scheduler.add_job.call_args.kwargs["id"]
    assert job_id.startswith(f"video_progress_{student.id}_{video.id}_")
    scheduler.remove_job.assert_called_once_with(job_id)

    assert ws.errors() == ["Invalid position", "Invalid JSON payload"]
    assert ws.sent[-1]["type"] == "progress_saved"
    assert ws.sent[-1]["watch_percentage"] == 40

    row = await db.scalar(
        select(VideoProgress).where(
            VideoProgress.user_id == student.id, VideoProgress.video_id == video.id
        )
    )
    assert row.watch_percentage == 40
    assert row.last_position == 40
    assert row.completed is False
    assert ws.closed_with == 1000


async def test_watch_session_complete_message(
    db, scheduler, student, admin, make_course
):
    _, videos = await make_course(admin)
    ws = FakeSocket([{"type": "complete"}], token=await _token(student))

    await video_watch_ws(ws, videos[0].id)

    assert ws.types() == ["session_started", "progress_saved", "video_completed"]
    row = await db.scalar(
        select(VideoProgress).where(VideoProgress.video_id == videos[0].id)
    )
    assert (row.watch_percentage, row.completed) == (100, True)


async def test_watch_session_resumes_from_stored_progress(
    db, scheduler, student, admin, make_course
):
    _, videos = await make_course(admin)
    db.add(
        VideoProgress(
            user_id=student.id,
            video_id=videos[0].id,
            last_position=60,
            watch_percentage=60,
        )
    )
    await db.commit()

    # behind the stored position: nothing new to save
    ws = FakeSocket(
        [{"type": "position", "position": 30, "duration": 100}],
        token=await _token(student),
    )
    await video_watch_ws(ws, videos[0].id)

    assert ws.types() == ["session_started"]
    assert ws.sent[0]["state"] == "in_progress"
    assert ws.sent[0]["progress"]["watch_percentage"] == 60


async def test_watch_session_unknown_video(scheduler, student):
    ws = FakeSocket(token=await _token(student))

    await video_watch_ws(ws, uuid.uuid4())

    assert ws.errors() == ["Video not found"]
    scheduler.add_job.assert_not_called()


async def test_watch_session_without_token_is_closed(scheduler):
    ws = FakeSocket()

    await video_watch_ws(ws, uuid.uuid4())

    assert ws.errors() == ["Missing authentication token"]
    assert ws.closed_with == 1008
    scheduler.add_job.assert_not_called()


def test_watch_route_rejects_anonymous_client():
    from proofbench.main import app

    client = TestClient(app)
    with client.websocket_connect(
        f"/api/v1/learning/ws/videos/{uuid.uuid4()}/watch"
    ) as ws:
        assert ws.receive_json() == {"error": "Missing authentication token"}
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
    assert exc.value.code == 1008


# ==========================
# 💬 COMMENT ROOM
# ==========================


async def test_comment_room_broadcasts_events(
    db, scheduler, student, admin, make_course
):
    _, videos = await make_course(admin)
    video = videos[0]
    room = video_comments_room(video.id)
    listener = FakeSocket()
    await listener.accept()
    await ws_manager.connect(listener, room)

    try:
        author = FakeSocket(
            [
                {"type": "create", "content": "Where is the source code?"},
                {"type": "typing"},
                {"type": "create", "content": ""},
                {"type": "shout"},
            ],
            token=await _token(student),
        )
        await video_comments_ws(author, video.id)

        assert listener.types() == ["comment_created", "typing"]
        created = listener.sent[0]["comment"]
        assert created["user"]["full_name"] == student.full_name
        assert author.errors()[0].startswith("Invalid comment payload")
        assert author.errors()[1] == "Unknown message type: shout"
        assert ws_manager.room_size(room) == 1

        # only the author may delete
        intruder = FakeSocket(
            [{"type": "delete", "id": created["id"]}], token=await _token(admin)
        )
        await video_comments_ws(intruder, video.id)
        assert intruder.sent[-1]["code"] == 403

        owner = FakeSocket(
            [{"type": "delete", "id": created["id"]}], token=await _token(student)
        )
        await video_comments_ws(owner, video.id)
        assert listener.sent[-1] == {
            "type": "comment_deleted",
            "comment_id": created["id"],
            "video_id": str(video.id),
        }
        assert await db.scalar(select(func.count()).select_from(VideoComments)) == 0
    finally:
        ws_manager.disconnect(listener, room)
