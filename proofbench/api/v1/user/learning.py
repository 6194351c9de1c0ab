import json
import uuid
from typing import Optional

from fastapi import (
    APIRouter,
    Body,
    Depends,
    HTTPException,
    Query,
    WebSocket,
    WebSocketDisconnect,
)
from fastapi.websockets import WebSocketState
from loguru import logger
from pydantic import ValidationError

from proofbench.core.deps import AuthorizationService
from proofbench.core.enum import CourseCategory
from proofbench.core.ws_manager import video_comments_room, ws_manager
from proofbench.db.session import AsyncSessionLocal
from proofbench.libs.roles import is_admin
from proofbench.schemas.user.learning import (
    CourseFilters,
    CreateVideoComment,
    UpdateVideoComment,
    UpdateVideoProgress,
)
from proofbench.services.admin.video import VideoService
from proofbench.services.user.comments import CommentService
from proofbench.services.user.progress import ProgressService
from proofbench.services.user.progress_tracker import (
    ReportedPositionPlayer,
    VideoProgressTracker,
    make_progress_persister,
)

router = APIRouter(prefix="/learning", tags=["User Learning"])


# ==========================
# 📊 PROGRESS
# ==========================


@router.get("/continue-watching")
async def get_continue_watching(
    progress_service: ProgressService = Depends(ProgressService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await progress_service.get_continue_watching_async(
        user.id, published_only=not is_admin(user.role)
    )


@router.get("/courses")
async def get_courses_with_progress(
    category: Optional[CourseCategory] = Query(None),
    search: Optional[str] = Query(None),
    created_by: Optional[uuid.UUID] = Query(None),
    progress_service: ProgressService = Depends(ProgressService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    filters = CourseFilters(
        category=category,
        search=search,
        created_by=created_by,
        published=None if is_admin(user.role) else True,
    )
    return await progress_service.get_courses_with_progress_async(user.id, filters)


@router.get("/courses/{course_id}/progress")
async def get_course_progress(
    course_id: uuid.UUID,
    progress_service: ProgressService = Depends(ProgressService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await progress_service.get_course_progress_async(course_id, user.id)


@router.get("/videos/{video_id}/progress")
async def get_video_progress(
    video_id: uuid.UUID,
    progress_service: ProgressService = Depends(ProgressService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await progress_service.get_video_progress_async(video_id, user.id)


@router.put("/videos/{video_id}/progress")
async def update_video_progress(
    video_id: uuid.UUID,
    schema: UpdateVideoProgress = Body(...),
    progress_service: ProgressService = Depends(ProgressService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await progress_service.update_video_progress_async(video_id, user.id, schema)


@router.post("/videos/{video_id}/complete")
async def mark_video_complete(
    video_id: uuid.UUID,
    progress_service: ProgressService = Depends(ProgressService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    return await progress_service.mark_video_complete_async(video_id, user.id)


# ==========================
# 💬 COMMENTS
# ==========================


@router.get("/videos/{video_id}/comments")
async def get_video_comments(
    video_id: uuid.UUID,
    comment_service: CommentService = Depends(CommentService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    viewer = await authorization.get_current_user_if_any()
    return await comment_service.list_video_comments_async(
        video_id, viewer.id if viewer else None
    )


@router.post("/videos/{video_id}/comments")
async def create_video_comment(
    video_id: uuid.UUID,
    schema: CreateVideoComment = Body(...),
    comment_service: CommentService = Depends(CommentService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    result = await comment_service.create_video_comment_async(video_id, schema, user)
    await ws_manager.broadcast(video_comments_room(video_id), result)
    return result


@router.put("/comments/{comment_id}")
async def update_comment(
    comment_id: uuid.UUID,
    schema: UpdateVideoComment = Body(...),
    comment_service: CommentService = Depends(CommentService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    result = await comment_service.update_comment_async(comment_id, schema, user)
    await ws_manager.broadcast(
        video_comments_room(result["comment"]["video_id"]), result
    )
    return result


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: uuid.UUID,
    comment_service: CommentService = Depends(CommentService),
    authorization: AuthorizationService = Depends(AuthorizationService),
):
    user = await authorization.get_current_user()
    result = await comment_service.delete_comment_async(comment_id, user)
    await ws_manager.broadcast(video_comments_room(result["video_id"]), result)
    return result


# ==========================
# 🔌 WEBSOCKETS
# ==========================


def _make_ws_helpers(websocket: WebSocket, room_key: Optional[str] = None):
    async def send_safe(payload: dict):
        """Send only while the socket is open"""
        if websocket.client_state == WebSocketState.CONNECTED:
            try:
                await websocket.send_json(payload)
            except Exception as e:
                logger.debug(f"WS send skipped: {e}")

    async def disconnect_safe():
        """Leave the room and close the socket"""
        if room_key:
            ws_manager.disconnect(websocket, room_key)
        if websocket.client_state == WebSocketState.CONNECTED:
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"WS close skipped: {e}")

    return send_safe, disconnect_safe


async def _receive_json(websocket: WebSocket, send_safe) -> Optional[dict]:
    """Next JSON message; None means the client went away."""
    while True:
        try:
            raw = await websocket.receive_text()
        except WebSocketDisconnect:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            await send_safe({"error": "Invalid JSON payload"})
            continue
        if not isinstance(data, dict):
            await send_safe({"error": "Expected a JSON object"})
            continue
        return data


@router.websocket("/ws/videos/{video_id}/watch")
async def video_watch_ws(websocket: WebSocket, video_id: uuid.UUID):
    """
    One viewing session of a video.
    - client sends {"type": "position", "position": s, "duration": d} as playback advances
    - client sends {"type": "complete"} to mark the video complete
    - server pushes progress_saved / video_completed
    Progress is saved on a fixed interval and once more on disconnect.
    """
    send_safe, disconnect_safe = _make_ws_helpers(websocket)
    tracker = None

    try:
        await websocket.accept()

        user = await AuthorizationService.get_user_ws(websocket)
        if not user:
            return

        # 1️⃣ video + what is already stored
        try:
            async with AsyncSessionLocal() as db:
                video = await VideoService(db).get_video_or_404(video_id)
                initial = await ProgressService(db).get_video_progress_async(
                    video_id, user.id
                )
        except HTTPException as e:
            await send_safe({"error": e.detail})
            return

        # 2️⃣ tracker fed by the client's player
        player = ReportedPositionPlayer(
            position=(initial or {}).get("last_position") or 0.0,
            duration=video.duration,
        )
        tracker = VideoProgressTracker(
            user.id,
            video_id,
            player,
            make_progress_persister(user.id, video_id),
            duration=video.duration,
            initial=initial,
            on_saved=send_safe,
            on_complete=send_safe,
        )
        tracker.start()
        await send_safe(
            {
                "type": "session_started",
                "video_id": str(video_id),
                "state": tracker.state.value,
                "progress": initial,
            }
        )

        # 3️⃣ client messages
        while True:
            data = await _receive_json(websocket, send_safe)
            if data is None:
                break

            msg_type = data.get("type")
            if msg_type == "position":
                try:
                    position = float(data.get("position"))
                    duration = data.get("duration")
                    player.report(
                        position, float(duration) if duration is not None else None
                    )
                except (TypeError, ValueError):
                    await send_safe({"error": "Invalid position"})
            elif msg_type == "complete":
                await tracker.mark_complete()
            else:
                await send_safe({"error": f"Unknown message type: {msg_type}"})

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.exception(f"❌ Watch session error ({video_id}): {e}")
    finally:
        # 4️⃣ final save before teardown
        if tracker is not None:
            await tracker.stop()
        await disconnect_safe()


@router.websocket("/ws/videos/{video_id}/comments")
async def video_comments_ws(websocket: WebSocket, video_id: uuid.UUID):
    room_key = video_comments_room(video_id)
    send_safe, disconnect_safe = _make_ws_helpers(websocket, room_key)

    try:
        await websocket.accept()

        user = await AuthorizationService.get_user_ws(websocket)
        if not user:
            return

        await ws_manager.connect(websocket, room_key)
        logger.info(f"🟢 {user.email} joined {room_key}")

        while True:
            data = await _receive_json(websocket, send_safe)
            if data is None:
                break

            msg_type = data.get("type")
            try:
                async with AsyncSessionLocal() as db:
                    service = CommentService(db)

                    # === CREATE ===
                    if msg_type == "create":
                        schema = CreateVideoComment(**(data.get("create") or data))
                        result = await service.create_video_comment_async(
                            video_id, schema, user
                        )

                    # === UPDATE ===
                    elif msg_type == "update":
                        payload = data.get("update") or data
                        comment_id = uuid.UUID(str(payload.get("id", "")))
                        result = await service.update_comment_async(
                            comment_id, UpdateVideoComment(**payload), user
                        )

                    # === DELETE ===
                    elif msg_type == "delete":
                        comment_id = uuid.UUID(str(data.get("id", "")))
                        result = await service.delete_comment_async(comment_id, user)

                    # === TYPING ===
                    elif msg_type == "typing":
                        result = {
                            "type": "typing",
                            "user_id": str(user.id),
                            "full_name": user.full_name,
                        }

                    else:
                        await send_safe({"error": f"Unknown message type: {msg_type}"})
                        continue

            except HTTPException as e:
                await send_safe({"error": e.detail, "code": e.status_code})
                continue
            except (ValidationError, ValueError) as e:
                await send_safe({"error": f"Invalid comment payload: {e}"})
                continue

            await ws_manager.broadcast(room_key, result)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.exception(f"❌ Comment socket error ({room_key}): {e}")
    finally:
        await disconnect_safe()
