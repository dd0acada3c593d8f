"""
Concurrency tests for invite redemption.

Threads redeem the same code at once; the conditional update must hand
out exactly max_uses redemptions. PostgreSQL only.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed

import pytest
from django.db import connection

from authentication.tests.factories import UserFactory
from core.exceptions import ConflictError
from invites.models import InviteCode, InviteCodeUse
from invites.services import InviteCodeService
from invites.tests.factories import InviteCodeFactory


def _redeem(code, user_id):
    try:
        InviteCodeService.redeem(code, user_id)
        return "redeemed"
    except ConflictError as exc:
        return exc.error_code
    finally:
        connection.close()


@pytest.mark.usefixtures("postgres_only")
@pytest.mark.django_db(transaction=True, serialized_rollback=True)
class TestConcurrentRedemption:
    """Racing redeemers never push uses past max_uses."""

    @pytest.mark.parametrize("max_uses", [1, 3])
    def test_exactly_max_uses_succeed(self, max_uses):
        invite = InviteCodeFactory(max_uses=max_uses)
        users = [UserFactory() for _ in range(10)]

        with ThreadPoolExecutor(max_workers=10) as executor:
            futures = [executor.submit(_redeem, invite.code, u.id) for u in users]
            outcomes = [f.result() for f in as_completed(futures)]

        assert outcomes.count("redeemed") == max_uses
        assert outcomes.count("INVITE_EXHAUSTED") == 10 - max_uses
        assert InviteCode.objects.get(pk=invite.pk).uses == max_uses
        assert InviteCodeUse.objects.filter(invite_code=invite).count() == max_uses
