from ghost_league.schemas.auth import LoginRequest, RegisterRequest, ResendCodeRequest, VerifyAndLoginRequest, user_to_dict
from ghost_league.schemas.users import (
    AppealReplyRequest,
    AppealRequest,
    BanRequest,
    SuspendRequest,
    appeal_to_dict,
    notification_to_dict,
    status_to_dict,
)
