"""
Invite code service layer.

Services:
    InviteCodeService: Issue, redeem, validate, revoke and purge codes

Design Principles:
    - Redemption is a single conditional UPDATE; the limit and expiry
      checks and the increment happen in one statement, so concurrent
      redeemers can never push uses past max_uses
    - The redemption record is written in the same transaction as the
      increment
    - Code collisions are resolved by the unique constraint and a bounded
      number of fresh attempts

Usage:
    from invites.services import InviteCodeService

    invite = InviteCodeService.issue(admin.id, max_uses=5)
    InviteCodeService.redeem(invite.code.lower(), new_user.id)
"""

from __future__ import annotations

import secrets
from datetime import datetime

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.db.models import F, Q
from django.utils import timezone

from core.decorators import retry_on_connection_loss
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.services import BaseService
from invites.constants import INVITE_CONFIG
from invites.models import InviteCode, InviteCodeUse


class InviteCodeService(BaseService):
    """
    Service for invite codes.

    Methods:
        issue: Create a new random code
        redeem: Consume one use of a code on behalf of a user
        is_valid: Whether a code exists and can still be redeemed
        revoke: Delete a code
        purge_spent: Delete expired and exhausted codes
        generate_code: A random candidate code (not persisted)
    """

    @classmethod
    def generate_code(cls) -> str:
        length = getattr(settings, "INVITE_CODE_LENGTH", INVITE_CONFIG.DEFAULT_CODE_LENGTH)
        return "".join(secrets.choice(INVITE_CONFIG.ALPHABET) for _ in range(length))

    @classmethod
    @retry_on_connection_loss
    def issue(
        cls,
        creator_id: int,
        max_uses: int | None = None,
        expires_at: datetime | None = None,
    ) -> InviteCode:
        """
        Issue a new invite code.

        Args:
            creator_id: User issuing the code
            max_uses: Redemption limit, or None for unlimited
            expires_at: Expiry time, or None for no expiry

        Raises:
            ValidationError: max_uses below 1, or expires_at naive or not
                in the future
            NotFoundError: Unknown creator
            ConflictError: No unused code found within the attempt limit
        """
        if max_uses is not None and max_uses < 1:
            raise ValidationError(
                "max_uses must be at least 1",
                error_code="INVALID_MAX_USES",
                details={"max_uses": max_uses},
            )
        if expires_at is not None and timezone.is_naive(expires_at):
            raise ValidationError(
                "Expiry time must be timezone-aware",
                error_code="INVALID_EXPIRY",
                details={"expires_at": expires_at.isoformat()},
            )
        if expires_at is not None and expires_at <= timezone.now():
            raise ValidationError(
                "Expiry time must be in the future",
                error_code="INVALID_EXPIRY",
                details={"expires_at": expires_at.isoformat()},
            )

        cls.get_or_raise(get_user_model(), "USER_NOT_FOUND", pk=creator_id)

        attempts = getattr(
            settings, "INVITE_CODE_MAX_ATTEMPTS", INVITE_CONFIG.DEFAULT_MAX_ATTEMPTS
        )
        for attempt in range(1, attempts + 1):
            code = cls.generate_code()
            try:
                with cls.atomic():
                    invite = InviteCode.objects.create(
                        code=code,
                        created_by_id=creator_id,
                        max_uses=max_uses,
                        expires_at=expires_at,
                    )
            except IntegrityError:
                cls.get_logger().warning(
                    f"Invite code collision on attempt {attempt}/{attempts}"
                )
                continue

            cls.get_logger().info(
                f"User {creator_id} issued invite code {invite.id} "
                f"(max_uses={max_uses}, expires_at={expires_at})"
            )
            return invite

        raise ConflictError(
            "Could not generate a unique invite code",
            error_code="INVITE_CODE_COLLISION",
            details={"attempts": attempts},
        )

    @classmethod
    @retry_on_connection_loss
    def redeem(cls, code: str, user_id: int) -> InviteCode:
        """
        Consume one use of an invite code.

        Codes are matched case-insensitively.

        Returns:
            The invite code after the increment

        Raises:
            NotFoundError: Unknown code or user
            ConflictError: Code expired (INVITE_EXPIRED) or out of uses
                (INVITE_EXHAUSTED)
        """
        code = code.strip().upper()
        cls.get_or_raise(get_user_model(), "USER_NOT_FOUND", pk=user_id)

        with cls.atomic():
            now = timezone.now()
            updated = (
                InviteCode.objects.filter(code=code)
                .filter(Q(max_uses__isnull=True) | Q(uses__lt=F("max_uses")))
                .filter(Q(expires_at__isnull=True) | Q(expires_at__gt=now))
                .update(uses=F("uses") + 1, updated_at=now)
            )

            if not updated:
                raise cls._rejection(code, now)

            invite = InviteCode.objects.get(code=code)
            InviteCodeUse.objects.create(invite_code=invite, user_id=user_id)

        cls.get_logger().info(
            f"User {user_id} redeemed invite code {invite.id} "
            f"({invite.uses}/{invite.max_uses or 'unlimited'})"
        )
        return invite

    @classmethod
    def is_valid(cls, code: str) -> bool:
        invite = InviteCode.objects.filter(code=code.strip().upper()).first()
        return invite is not None and invite.is_usable()

    @classmethod
    @retry_on_connection_loss
    def revoke(cls, invite_id: int) -> bool:
        """Delete a code and its redemption records. Returns False if absent."""
        deleted, _ = InviteCode.objects.filter(pk=invite_id).delete()
        if deleted:
            cls.get_logger().info(f"Revoked invite code {invite_id}")
        return bool(deleted)

    @classmethod
    @retry_on_connection_loss
    def purge_spent(cls) -> int:
        """
        Delete codes that have expired or reached max_uses.

        Returns:
            Number of invite codes deleted
        """
        _, per_model = InviteCode.objects.filter(
            Q(expires_at__isnull=False, expires_at__lte=timezone.now())
            | Q(max_uses__isnull=False, uses__gte=F("max_uses"))
        ).delete()
        purged = per_model.get(InviteCode._meta.label, 0)

        if purged:
            cls.get_logger().info(f"Purged {purged} spent invite codes")
        return purged

    # =========================================================================
    # Internal helpers
    # =========================================================================

    @classmethod
    def _rejection(cls, code: str, now: datetime) -> Exception:
        """Explain why the conditional update matched no row."""
        invite = InviteCode.objects.filter(code=code).first()
        if invite is None:
            return NotFoundError(
                "Invalid invite code",
                error_code="INVITE_NOT_FOUND",
            )

        cls.get_logger().warning(f"Rejected redemption of invite code {invite.id}")
        if invite.is_expired(now):
            return ConflictError(
                "This invite code has expired",
                error_code="INVITE_EXPIRED",
                details={"expires_at": invite.expires_at.isoformat()},
            )
        return ConflictError(
            "This invite code has no uses left",
            error_code="INVITE_EXHAUSTED",
            details={"max_uses": invite.max_uses},
        )
