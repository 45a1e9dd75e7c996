"""
LaCasa Schemas
Pydantic request/response schemas for API validation and documentation.
"""

from app.schemas.user_schema import (
    SignUpRequest,
    LoginRequest,
    BootstrapProfileRequest,
    UpdateProfileRequest,
    CosmeticRequest,
    ReferralRequest,
)
from app.schemas.community_schema import (
    CommentRequest,
    ModerationRequest,
    EditContentRequest,
    ToolRequest,
    ToolUpdateRequest,
    StartConversationRequest,
    MessageRequest,
    GlobalMessageRequest,
    TicketRequest,
    TicketMessageRequest,
    TicketStatusRequest,
)
from app.schemas.store_schema import (
    ProductRequest,
    ProductUpdateRequest,
    AccessRequest,
    DeliverAccessRequest,
    ReviewRequest,
    PointsAdjustmentRequest,
    RoleRequest,
    MissionDefinitionRequest,
    MissionDefinitionUpdateRequest,
    MissionProgressRequest,
    AdminSetupRequest,
)
from app.schemas.tutorial_schema import (
    TopicRequest,
    TopicUpdateRequest,
    LessonRequest,
    LessonUpdateRequest,
    TutorialReviewRequest,
    ReviewApprovalRequest,
)
from app.schemas.responses import (
    ApiResponse,
    PaginatedResponse,
    ErrorResponse,
)

__all__ = [
    "SignUpRequest",
    "LoginRequest",
    "BootstrapProfileRequest",
    "UpdateProfileRequest",
    "CosmeticRequest",
    "ReferralRequest",
    "CommentRequest",
    "ModerationRequest",
    "EditContentRequest",
    "ToolRequest",
    "ToolUpdateRequest",
    "StartConversationRequest",
    "MessageRequest",
    "GlobalMessageRequest",
    "TicketRequest",
    "TicketMessageRequest",
    "TicketStatusRequest",
    "ProductRequest",
    "ProductUpdateRequest",
    "AccessRequest",
    "DeliverAccessRequest",
    "ReviewRequest",
    "PointsAdjustmentRequest",
    "RoleRequest",
    "MissionDefinitionRequest",
    "MissionDefinitionUpdateRequest",
    "MissionProgressRequest",
    "AdminSetupRequest",
    "TopicRequest",
    "TopicUpdateRequest",
    "LessonRequest",
    "LessonUpdateRequest",
    "TutorialReviewRequest",
    "ReviewApprovalRequest",
    "ApiResponse",
    "PaginatedResponse",
    "ErrorResponse",
]
