"""Identity and listing lookups used by the scheduling engine."""

from sqlalchemy.orm import Session

from backend.core.errors import NotFound
from backend.models.listing import Listing
from backend.models.user import User


class Directory:
    def __init__(self, db: Session):
        self.db = db

    def get_listing(self, listing_id: int) -> Listing:
        listing = self.db.query(Listing).filter(Listing.id == listing_id).first()
        if listing is None:
            raise NotFound('Listing not found.')
        return listing

    def get_user(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFound('User not found.')
        return user
