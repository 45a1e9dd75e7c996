"""Chat endpoints: direct conversations and the global room."""

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.crud.chat import ChatCRUD, GlobalChatCRUD
from app.dependencies import check_message_rate, get_current_profile, get_db_client, get_storage
from app.schemas import ApiResponse, GlobalMessageRequest, MessageRequest, StartConversationRequest
from app.services.storage import ImageStorage
from app.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.post("/conversations", response_model=ApiResponse)
async def start_conversation(
    request: StartConversationRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Open (or reopen) the conversation with another member."""
    conversation = ChatCRUD(db_client).get_or_create_conversation(profile["uid"], request.user_id)
    return ApiResponse.ok(conversation)


@router.get("/conversations", response_model=ApiResponse)
async def list_conversations(
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ChatCRUD(db_client).list_conversations(profile["uid"]))


@router.get("/conversations/{conversation_id}/messages", response_model=ApiResponse)
async def list_messages(
    conversation_id: str,
    limit: int = Query(100, ge=1, le=500),
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    return ApiResponse.ok(ChatCRUD(db_client).list_messages(conversation_id, profile["uid"], limit))


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_message_rate)],
)
async def send_message(
    conversation_id: str,
    request: MessageRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """
    Send a direct message.

    Raises:
        AuthorizationError: If the caller is not a participant
        HTTPException: 429 when the caller exceeds the send rate
    """
    message = ChatCRUD(db_client).send_message(conversation_id, profile, request.content)
    return ApiResponse.ok(message, message="Message sent")


@router.post("/conversations/{conversation_id}/read", response_model=ApiResponse)
async def mark_read(
    conversation_id: str,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    count = ChatCRUD(db_client).mark_read(conversation_id, profile["uid"])
    return ApiResponse.ok({"marked": count})


@router.get("/global", response_model=ApiResponse)
async def recent_global_messages(
    limit: int = Query(100, ge=1, le=500),
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    """Latest global chat messages, oldest first."""
    return ApiResponse.ok(GlobalChatCRUD(db_client).recent(limit))


@router.post(
    "/global",
    response_model=ApiResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(check_message_rate)],
)
async def send_global_message(
    request: GlobalMessageRequest,
    profile: dict = Depends(get_current_profile),
    db_client=Depends(get_db_client),
) -> ApiResponse:
    message = GlobalChatCRUD(db_client).send(
        profile, content=request.content, audio_url=request.audio_url, image_url=request.image_url
    )
    return ApiResponse.ok(message, message="Message sent")


@router.post("/uploads", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def upload_chat_image(
    image: UploadFile = File(...),
    profile: dict = Depends(get_current_profile),
    storage: ImageStorage = Depends(get_storage),
) -> ApiResponse:
    """Upload a picture to attach to a global chat message."""
    data = await image.read(storage.max_bytes + 1)
    return ApiResponse.ok(storage.upload_image("chat", profile["uid"], data, image.content_type))


@router.post("/uploads/audio", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def upload_chat_audio(
    audio: UploadFile = File(...),
    profile: dict = Depends(get_current_profile),
    storage: ImageStorage = Depends(get_storage),
) -> ApiResponse:
    """Upload a voice note (WEBM or MP4) to attach to a global chat message."""
    data = await audio.read(storage.max_bytes + 1)
    return ApiResponse.ok(storage.upload_audio(profile["uid"], data, audio.content_type))
