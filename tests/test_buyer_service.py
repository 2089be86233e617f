"""
Cohort resolution, ranking and member edits.
"""
import pytest

from topup_pricing.engine import NotFoundError, ValidationError


def test_cohort_members_are_active_and_tagged(buyer_service):
    assert sorted(b.id for b in buyer_service.cohort_members("reseller")) == ["r1", "r2"]
    assert [b.id for b in buyer_service.cohort_members("end_user")] == ["e1"]


def test_unknown_cohort_rejected(buyer_service):
    with pytest.raises(ValidationError):
        buyer_service.cohort_members("vip")


def test_set_cohort_tag_and_status(buyer_service):
    assert buyer_service.set_cohort_tag("e1", "reseller") is True
    assert buyer_service.set_status("r1", "inactive") is True
    assert sorted(b.id for b in buyer_service.cohort_members("reseller")) == ["e1", "r2"]


def test_invalid_enum_values_rejected(buyer_service):
    with pytest.raises(ValidationError):
        buyer_service.set_cohort_tag("e1", "admin")
    with pytest.raises(ValidationError):
        buyer_service.set_status("e1", "banned")
    assert buyer_service.get_buyer("e1").cohort_tag == "end_user"


def test_update_missing_buyer_reports_failure(buyer_service):
    assert buyer_service.set_status("ghost", "inactive") is False
    with pytest.raises(NotFoundError):
        buyer_service.get_buyer("ghost")


def test_top_buyers_ranked_by_spend_then_orders(buyer_service):
    df = buyer_service.top_buyers(limit=3)
    # r1 and r2 tie on spend; r2 has more orders
    assert list(df['id']) == ["r2", "r1", "e1"]
    assert list(df['rank']) == [1, 2, 3]


def test_list_buyers_filter(buyer_service):
    assert [b.id for b in buyer_service.list_buyers(status="inactive")] == ["r3"]


def test_cohort_counts(buyer_service):
    counts = buyer_service.cohort_counts()
    assert counts == {
        'total': 4,
        'active': 3,
        'resellers': 3,
        'active_resellers': 2,
        'active_end_users': 1,
    }
