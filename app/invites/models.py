"""
Invite code models.

Models:
    InviteCode: A code that lets new users register, optionally bounded
        by a use count and an expiry time
    InviteCodeUse: Append-only record of each successful redemption

Design Decisions:
    - Codes are stored upper-case; lookups upper-case their input
    - uses never exceeds max_uses, enforced by a check constraint as well
      as by the conditional update that redeems a code
"""

from __future__ import annotations

from datetime import datetime

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from core.models import BaseModel
from invites.constants import INVITE_CONFIG


class InviteCode(BaseModel):
    """
    A registration invite code.

    Fields:
        code: Unique upper-case code
        created_by: User who issued the code
        max_uses: Redemption limit (null = unlimited)
        uses: Successful redemptions so far
        expires_at: Expiry time (null = never expires)
    """

    code = models.CharField(max_length=INVITE_CONFIG.MAX_CODE_LENGTH, unique=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="invite_codes",
    )
    max_uses = models.PositiveIntegerField(null=True, blank=True)
    uses = models.PositiveIntegerField(default=0)
    expires_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "invite_codes"
        ordering = ["-created_at", "-id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(max_uses__isnull=True) | Q(uses__lte=F("max_uses")),
                name="invite_uses_within_limit",
            ),
        ]

    def __str__(self) -> str:
        return f"InviteCode({self.code}, {self.uses}/{self.max_uses or '-'})"

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or timezone.now())

    @property
    def is_exhausted(self) -> bool:
        return self.max_uses is not None and self.uses >= self.max_uses

    def is_usable(self, now: datetime | None = None) -> bool:
        return not self.is_expired(now) and not self.is_exhausted


class InviteCodeUse(models.Model):
    """A single redemption of an invite code."""

    invite_code = models.ForeignKey(
        InviteCode,
        on_delete=models.CASCADE,
        related_name="redemptions",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="invite_code_uses",
    )
    used_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "invite_code_uses"
        ordering = ["used_at", "id"]

    def __str__(self) -> str:
        return f"InviteCodeUse({self.invite_code_id}, user={self.user_id})"
