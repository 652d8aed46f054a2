"""
Single-default-per-organization enforcement.

Every price list mutation that can touch `is_default` runs inside
default_list_transaction(), which serializes work per organization and
commits or rolls back as one unit. The only way to move the default flag is
promote_to_default(), which clears and sets in one step.
"""
import logging
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    CannotDeleteDefaultList,
    CannotRemoveOnlyDefault,
    ConflictDefaultInvariant,
    ValidationError,
)
from app.models.price_list import PriceList

logger = logging.getLogger(__name__)

_ORG_LOCKS: Dict[int, Lock] = {}
_ORG_LOCKS_LOCK = Lock()


def _org_lock(organization_id: int) -> Lock:
    with _ORG_LOCKS_LOCK:
        lock = _ORG_LOCKS.get(organization_id)
        if lock is None:
            lock = _ORG_LOCKS[organization_id] = Lock()
        return lock


def _is_name_conflict(exc: IntegrityError) -> bool:
    # postgres names the constraint, sqlite names the columns
    message = str(exc.orig)
    return "uk_price_list_org_name" in message or "price_list.name" in message


@contextmanager
def default_list_transaction(db: Session, organization_id: int, timeout: Optional[float] = None):
    """
    Unit of work for price list mutations of one organization.

    Holds the organization's lock for the whole block, locks the
    organization's price list rows (SELECT ... FOR UPDATE where the backend
    supports it), commits on success and rolls back on any error so a
    half-done clear-then-set never becomes visible.
    """
    lock = _org_lock(organization_id)
    wait = settings.DEFAULT_LOCK_TIMEOUT_SECONDS if timeout is None else timeout
    if not lock.acquire(timeout=wait):
        raise ConflictDefaultInvariant(
            f"Could not acquire the default price list lock for organization {organization_id}"
        )

    try:
        (
            db.query(PriceList.id)
            .filter(PriceList.organization_id == organization_id)
            .with_for_update()
            .all()
        )
        yield
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if _is_name_conflict(e):
            raise ValidationError("A price list with this name already exists") from e
        logger.error("price list transaction for organization %s rolled back: %s", organization_id, e)
        raise ConflictDefaultInvariant(
            "Another default price list change for this organization won; nothing was changed"
        ) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("price list transaction for organization %s rolled back: %s", organization_id, e)
        raise ConflictDefaultInvariant(
            "The default price list change could not be applied atomically; nothing was changed"
        ) from e
    except Exception:
        db.rollback()
        raise
    finally:
        lock.release()


def promote_to_default(db: Session, organization_id: int, price_list: PriceList) -> None:
    """
    Make `price_list` the organization's only default.
    Promoting the current default is a no-op.
    """
    if price_list.is_default:
        return

    if price_list.id is None:
        db.flush()

    cleared = db.execute(
        update(PriceList)
        .where(
            PriceList.organization_id == organization_id,
            PriceList.id != price_list.id,
            PriceList.is_default.is_(True),
        )
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )
    price_list.is_default = True
    db.flush()

    logger.info(
        "price list %s promoted to default for organization %s (cleared %s)",
        price_list.id, organization_id, cleared.rowcount,
    )


# ---------- CHECKS ----------

def apply_default_on_create(db: Session, organization_id: int, price_list: PriceList, is_default: bool) -> None:
    """
    New rows are inserted non-default and promoted if asked. A first list
    created without is_default stays non-default.
    """
    price_list.is_default = False
    db.add(price_list)
    db.flush()
    if is_default:
        promote_to_default(db, organization_id, price_list)


def apply_default_on_update(db: Session, organization_id: int, price_list: PriceList, is_default: Optional[bool]) -> None:
    if is_default is None:
        return

    if is_default:
        promote_to_default(db, organization_id, price_list)
        return

    if price_list.is_default:
        logger.warning(
            "rejected unsetting default on price list %s (organization %s)",
            price_list.id, organization_id,
        )
        raise CannotRemoveOnlyDefault(price_list.id)


def check_delete(price_list: PriceList) -> None:
    if price_list.is_default:
        logger.warning(
            "rejected delete of default price list %s (organization %s)",
            price_list.id, price_list.organization_id,
        )
        raise CannotDeleteDefaultList(price_list.id)
