from app.db.repo.activation_codes_repo import ActivationCodesRepo
from app.db.repo.redemption_attempts_repo import RedemptionAttemptsRepo
from app.db.repo.resources_repo import ResourcesRepo
from app.db.repo.user_activation_codes_repo import UserActivationCodesRepo
from app.db.repo.users_repo import UsersRepo

__all__ = [
    "ActivationCodesRepo",
    "RedemptionAttemptsRepo",
    "ResourcesRepo",
    "UserActivationCodesRepo",
    "UsersRepo",
]
