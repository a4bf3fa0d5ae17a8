from sqlalchemy.orm import Session
from typing import List, Optional

from backend.app.models.models import Activity
from backend.app.stores import WalletStore

def get_activities(db: Session, user_id: str, wallet_id: Optional[str] = None, limit: int = 50) -> List[Activity]:
    """
    Newest activity entries first.

    With a wallet_id the feed is the wallet's, readable by any of its
    collaborators; entries live under the wallet owner's log. Without one,
    the user's own log is returned.
    """
    query = db.query(Activity)
    if wallet_id:
        wallet = WalletStore(db, user_id).get(wallet_id)
        query = query.filter(Activity.user_id == wallet.user_id, Activity.wallet_id == wallet.id)
    else:
        query = query.filter(Activity.user_id == user_id)
    return query.order_by(Activity.sequence.desc()).limit(limit).all()
