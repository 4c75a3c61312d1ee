from meme_tracker.models.token import TrackedToken
from meme_tracker.models.promising_address import PromisingAddressRow

__all__ = [
    "TrackedToken",
    "PromisingAddressRow",
]
