from app.db.models.activation_codes import ActivationCode
from app.db.models.media_files import MediaFile
from app.db.models.playlists import Playlist
from app.db.models.products import Product
from app.db.models.qr_codes import QrCode
from app.db.models.redemption_attempts import RedemptionAttempt
from app.db.models.slideshows import Slideshow
from app.db.models.user_activation_codes import UserActivationCode
from app.db.models.users import User

__all__ = [
    "ActivationCode",
    "MediaFile",
    "Playlist",
    "Product",
    "QrCode",
    "RedemptionAttempt",
    "Slideshow",
    "User",
    "UserActivationCode",
]
