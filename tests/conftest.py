import os
import secrets
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Ensure project root on sys.path so 'app' resolves without an editable install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app.main import app  # type: ignore
from app.database import Base  # type: ignore
from app.api import deps  # type: ignore
"""Pytest fixtures and factories.

All model modules must be imported before Base.metadata.create_all() so every
table is registered.
"""
from app.models.db import Campaign, DisplayOverride, User
from app.models.db.enums import CampaignStatus, UserRole
from app.services.eligibility import is_eligible, feed_order_key
from app.services.errors import StoreUnavailable
from app.services.targeting import TargetingIndex
from app.utils.time import FixedClock

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)

# File-based SQLite so the API's sessions and the test's session see the same data
SQLALCHEMY_TEST_URL = "sqlite+pysqlite:///./test_ad_manager.db"
engine = create_engine(
    SQLALCHEMY_TEST_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Background jobs look SessionLocal up on their module at run time
import app.database as _app_database  # noqa: E402
_app_database.SessionLocal = TestingSessionLocal  # type: ignore
import app.jobs.housekeeping as _housekeeping_mod  # noqa: E402
_housekeeping_mod.SessionLocal = TestingSessionLocal  # type: ignore

@pytest.fixture(scope="session", autouse=True)
def create_test_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    try:
        os.remove("test_ad_manager.db")
    except OSError:
        pass

@pytest.fixture()
def db_session():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture(autouse=True)
def _isolate_tables(create_test_db):
    """Feeds read every eligible campaign, so no rows may leak between tests."""
    yield
    session = TestingSessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
    finally:
        session.close()

# Override dependency
def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

app.dependency_overrides[deps.get_db] = _override_get_db

@pytest.fixture()
def clock():
    """Pinned clock shared by the API (via get_clock) and the test body."""
    fixed = FixedClock(NOW)
    app.dependency_overrides[deps.get_clock] = lambda: fixed
    yield fixed
    app.dependency_overrides.pop(deps.get_clock, None)

@pytest.fixture()
def client(clock):
    return TestClient(app)

# ---------- Data factory helpers ----------

@pytest.fixture()
def user_factory(db_session):
    def _create(role: UserRole = UserRole.BUSINESS, *, email: str | None = None, company_name: str = "Acme Bakery"):
        user = User(
            email=email or f"{secrets.token_hex(4)}@example.com",
            company_name=company_name,
            role=role,
            api_key=f"key_{secrets.token_hex(12)}",
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create

@pytest.fixture()
def campaign_factory(db_session):
    def _create(
        title: str = "Spot",
        *,
        status: CampaignStatus = CampaignStatus.APPROVED,
        file_url: str = "https://cdn.example.com/ads/spot.png",
        scheduled_from: datetime | None = None,
        scheduled_to: datetime | None = None,
        created_at: datetime | None = None,
        owner: User | None = None,
        displays: list[int] | None = None,
    ):
        campaign = Campaign(
            title=title,
            file_url=file_url,
            status=status,
            scheduled_from=scheduled_from,
            scheduled_to=scheduled_to,
            created_at=created_at or NOW - timedelta(days=1),
            user_id=owner.id if owner else None,
        )
        db_session.add(campaign)
        db_session.commit()
        db_session.refresh(campaign)
        if displays:
            TargetingIndex(db_session).replace_targets(campaign.id, displays)
            db_session.commit()
        return campaign
    return _create

@pytest.fixture()
def override_factory(db_session):
    def _create(display_id: int, campaign_id: int, valid_until: datetime):
        override = DisplayOverride(
            display_id=display_id,
            campaign_id=campaign_id,
            valid_until=valid_until,
            created_at=NOW,
        )
        db_session.add(override)
        db_session.commit()
        db_session.refresh(override)
        return override
    return _create

@pytest.fixture()
def auth_header(user_factory):
    user = user_factory(UserRole.BUSINESS)
    return {"Authorization": f"Bearer {user.api_key}"}, user

@pytest.fixture()
def admin_header(user_factory):
    admin = user_factory(UserRole.ADMIN, company_name="Admin")
    return {"Authorization": f"Bearer {admin.api_key}"}, admin

# ---------- In-memory feed store ----------

class FakeFeedStore:
    """Dict-backed FeedStore following the same eligibility/targeting rules as SqlFeedStore.

    ``fail`` holds operation names that raise StoreUnavailable.
    """

    def __init__(self, campaigns=(), *, targets=None, overrides=(), fail=()):
        self.campaigns = list(campaigns)
        self.targets: dict[int, set[int]] = targets or {}
        # (display_id, campaign_id, valid_until)
        self.overrides = list(overrides)
        self.fail = set(fail)
        self.calls: list[str] = []

    def _enter(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail:
            raise StoreUnavailable(f"{operation} failed")

    def _visible(self, campaign, display_id: int) -> bool:
        displays = self.targets.get(campaign.id)
        return not displays or display_id in displays

    def live_override(self, display_id, as_of):
        self._enter("live_override")
        by_id = {c.id: c for c in self.campaigns}
        live = [
            o for o in self.overrides
            if o[0] == display_id and o[2] >= as_of and is_eligible(by_id.get(o[1]), as_of)
        ]
        live.sort(key=lambda o: o[2], reverse=True)
        return by_id[live[0][1]] if live else None

    def eligible_campaigns(self, display_id, as_of, limit):
        self._enter("eligible_campaigns")
        rows = [c for c in self.campaigns if is_eligible(c, as_of) and self._visible(c, display_id)]
        return sorted(rows, key=feed_order_key)[:limit]

    def eligible_campaigns_untargeted(self, as_of, limit):
        self._enter("eligible_campaigns_untargeted")
        rows = [c for c in self.campaigns if is_eligible(c, as_of)]
        return sorted(rows, key=feed_order_key)[:limit]

@pytest.fixture()
def fake_store():
    return FakeFeedStore

def make_campaign(campaign_id: int, **overrides) -> Campaign:
    """Transient (never persisted) Campaign for store-free tests."""
    values = {
        "id": campaign_id,
        "title": f"Campaign {campaign_id}",
        "file_url": f"https://cdn.example.com/ads/{campaign_id}.png",
        "status": CampaignStatus.APPROVED,
        "scheduled_from": None,
        "scheduled_to": None,
        "created_at": NOW - timedelta(hours=campaign_id),
    }
    values.update(overrides)
    return Campaign(**values)

@pytest.fixture()
def campaign_row():
    return make_campaign
