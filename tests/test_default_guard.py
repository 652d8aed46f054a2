import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import (
    CannotDeleteDefaultList,
    CannotRemoveOnlyDefault,
    ConflictDefaultInvariant,
    ValidationError,
)
from app.database.connection import Base
from app.models.price_list import PriceList
from app.schemas.price_list import PriceListCreate, PriceListUpdate
from app.services.price_list.default_guard import default_list_transaction, promote_to_default
from app.services.price_list.registry import (
    create_price_list,
    delete_price_list,
    get_price_list,
    list_price_lists,
    update_price_list,
)

ORG = 1
OTHER_ORG = 2


def _create(db, name, is_default=False, organization_id=ORG):
    return create_price_list(
        db,
        PriceListCreate(name=name, currency="CLP", is_default=is_default),
        organization_id,
    )


def _defaults(db, organization_id=ORG):
    db.expire_all()
    return [pl.id for pl in list_price_lists(db, organization_id) if pl.is_default]


def test_creating_new_default_hands_off_from_previous(db):
    a = _create(db, "Retail", is_default=True)
    b = _create(db, "Wholesale", is_default=True)

    assert get_price_list(db, a.id, ORG).is_default is False
    assert get_price_list(db, b.id, ORG).is_default is True
    assert _defaults(db) == [b.id]


def test_promotion_is_scoped_to_organization(db):
    ours = _create(db, "Retail", is_default=True)
    theirs = _create(db, "Retail", is_default=True, organization_id=OTHER_ORG)

    _create(db, "Wholesale", is_default=True)

    assert _defaults(db, OTHER_ORG) == [theirs.id]
    assert ours.id not in _defaults(db)


def test_promoting_current_default_is_noop(db):
    a = _create(db, "Retail", is_default=True)
    b = _create(db, "Wholesale")
    before = {pl.id: (pl.is_default, pl.updated_at) for pl in list_price_lists(db, ORG)}

    update_price_list(db, a.id, PriceListUpdate(is_default=True), ORG)

    db.expire_all()
    after = {pl.id: (pl.is_default, pl.updated_at) for pl in list_price_lists(db, ORG)}
    assert after[b.id] == before[b.id]
    assert after[a.id][0] is True


def test_update_promotes_non_default(db):
    a = _create(db, "Retail", is_default=True)
    b = _create(db, "Wholesale")

    updated = update_price_list(db, b.id, PriceListUpdate(is_default=True), ORG)

    assert updated.is_default is True
    assert _defaults(db) == [b.id]
    assert get_price_list(db, a.id, ORG).is_default is False


def test_unsetting_sole_default_is_rejected(db):
    a = _create(db, "Retail", is_default=True)

    with pytest.raises(CannotRemoveOnlyDefault) as exc:
        update_price_list(db, a.id, PriceListUpdate(is_default=False, name="Renamed"), ORG)

    assert exc.value.status_code == 400
    refreshed = get_price_list(db, a.id, ORG)
    assert refreshed.is_default is True
    # the rejected update left every other field alone
    assert refreshed.name == "Retail"


def test_unsetting_default_on_non_default_row_is_allowed(db):
    _create(db, "Retail", is_default=True)
    b = _create(db, "Wholesale")

    updated = update_price_list(db, b.id, PriceListUpdate(is_default=False), ORG)
    assert updated.is_default is False


def test_deleting_default_is_rejected_even_with_other_lists(db):
    a = _create(db, "Retail", is_default=True)
    _create(db, "Wholesale")

    with pytest.raises(CannotDeleteDefaultList):
        delete_price_list(db, a.id, ORG)

    assert _defaults(db) == [a.id]


def test_first_list_is_not_auto_promoted(db):
    a = _create(db, "Retail")
    assert a.is_default is False
    assert _defaults(db) == []


def test_exactly_one_default_after_every_mutation(db):
    a = _create(db, "A", is_default=True)
    assert _defaults(db) == [a.id]

    b = _create(db, "B")
    assert _defaults(db) == [a.id]

    c = _create(db, "C", is_default=True)
    assert _defaults(db) == [c.id]

    update_price_list(db, b.id, PriceListUpdate(is_default=True), ORG)
    assert _defaults(db) == [b.id]

    delete_price_list(db, a.id, ORG)
    assert _defaults(db) == [b.id]

    with pytest.raises(CannotRemoveOnlyDefault):
        update_price_list(db, b.id, PriceListUpdate(is_default=False), ORG)
    assert _defaults(db) == [b.id]

    update_price_list(db, c.id, PriceListUpdate(is_default=True), ORG)
    delete_price_list(db, b.id, ORG)
    assert _defaults(db) == [c.id]


def test_failed_unit_of_work_rolls_back_clear_and_set(db):
    a = _create(db, "Retail", is_default=True)
    b = _create(db, "Wholesale")

    with pytest.raises(ConflictDefaultInvariant):
        with default_list_transaction(db, ORG):
            promote_to_default(db, ORG, db.get(PriceList, b.id))
            raise SQLAlchemyError("connection lost")

    assert _defaults(db) == [a.id]


def test_lock_timeout_raises_conflict(db):
    with default_list_transaction(db, ORG):
        with pytest.raises(ConflictDefaultInvariant):
            with default_list_transaction(db, ORG, timeout=0.01):
                pass


def test_other_organizations_are_not_blocked(db):
    with default_list_transaction(db, ORG):
        with default_list_transaction(db, OTHER_ORG, timeout=0.01):
            pass


# ---------- database-level backstop ----------

def test_second_default_from_another_writer_is_rejected_by_database(db):
    a = _create(db, "Retail", is_default=True)

    # a writer that never saw `a` (another process) tries to set its own default
    with pytest.raises(ConflictDefaultInvariant):
        with default_list_transaction(db, ORG):
            db.add(PriceList(organization_id=ORG, name="Rogue", currency="CLP", is_default=True))

    assert _defaults(db) == [a.id]
    assert [pl.name for pl in list_price_lists(db, ORG)] == ["Retail"]


def test_defaults_of_different_organizations_do_not_collide(db):
    with default_list_transaction(db, ORG):
        db.add(PriceList(organization_id=ORG, name="Retail", currency="CLP", is_default=True))
    with default_list_transaction(db, OTHER_ORG):
        db.add(PriceList(organization_id=OTHER_ORG, name="Retail", currency="CLP", is_default=True))

    assert len(_defaults(db)) == 1
    assert len(_defaults(db, OTHER_ORG)) == 1


def test_duplicate_name_from_another_writer_is_a_validation_error(db):
    _create(db, "Retail", is_default=True)

    # skips the name pre-check, as a concurrent create would
    with pytest.raises(ValidationError):
        with default_list_transaction(db, ORG):
            db.add(PriceList(organization_id=ORG, name="Retail", currency="USD", is_default=False))

    assert [pl.currency for pl in list_price_lists(db, ORG)] == ["CLP"]


# ---------- concurrency ----------

def test_concurrent_default_creates_leave_exactly_one_default(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'price_lists.db'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    SessionForThread = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    workers = 8
    barrier = threading.Barrier(workers)

    def create(i):
        session = SessionForThread()
        try:
            barrier.wait()
            return create_price_list(
                session,
                PriceListCreate(name=f"List {i}", currency="CLP", is_default=True),
                ORG,
            ).id
        finally:
            session.close()

    try:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            created = list(pool.map(create, range(workers)))

        check = SessionForThread()
        try:
            rows = check.query(PriceList).filter(PriceList.organization_id == ORG).all()
            defaults = [pl.id for pl in rows if pl.is_default]
        finally:
            check.close()
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()

    assert sorted(created) == sorted(pl.id for pl in rows)
    assert len(defaults) == 1
    assert defaults[0] in created
