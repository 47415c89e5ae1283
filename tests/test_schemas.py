from typing import get_args

import pytest
from pydantic import ValidationError

from coursedesk.models.client import PLANS, SUBSCRIPTION_STATUSES
from coursedesk.schemas.client import ClientCreate, ClientUpdate, PlanName, StatusName
from coursedesk.schemas.subscription import SubscriptionStatus, SubscriptionUpdate


def test_schema_literals_follow_the_model_constants():
    assert get_args(PlanName) == PLANS
    assert get_args(StatusName) == SUBSCRIPTION_STATUSES
    assert tuple(s.value for s in SubscriptionStatus) == SUBSCRIPTION_STATUSES


def test_unknown_plan_is_rejected():
    with pytest.raises(ValidationError):
        ClientCreate(email="a@acme.example.com", password="longenough", name="A", plan="platinum")
    with pytest.raises(ValidationError):
        SubscriptionUpdate.model_validate({"plan": "platinum"})


def test_client_update_only_dumps_sent_fields():
    changes = ClientUpdate(subscription_status="active", plan="pro")
    assert changes.model_dump(exclude_unset=True) == {"subscription_status": "active", "plan": "pro"}


def test_subscription_update_tracks_sent_expiry():
    assert "expires_at" not in SubscriptionUpdate.model_validate({}).model_fields_set
    assert "expires_at" in SubscriptionUpdate.model_validate({"expiresAt": None}).model_fields_set
