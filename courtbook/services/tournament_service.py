"""Tournament and registration service."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from courtbook.core.clock import Clock, ensure_utc, system_clock
from courtbook.core.exceptions import (
    DuplicateRegistrationException,
    InvalidTournamentTransitionException,
    NotFoundException,
    RegistrationClosedException,
    TournamentHasRegistrationsException,
    TournamentNotModifiableException,
    ValidationException,
)
from courtbook.models.notification import NotificationType
from courtbook.models.tournament import (
    Registration,
    RegistrationPaymentStatus,
    RegistrationStatus,
    Tournament,
    TournamentStatus,
)
from courtbook.models.user import User, UserRole
from courtbook.schemas.tournament import (
    RegistrationCreate,
    RegistrationPaymentUpdate,
    TournamentCreate,
    TournamentUpdate,
)
from courtbook.services.notification_service import NotificationService, notification_service

logger = logging.getLogger(__name__)

# Registrations that still hold a place in the draw
_COUNTED_REGISTRATION_STATUSES = (RegistrationStatus.PENDING.value, RegistrationStatus.CONFIRMED.value)

_STATUS_TRANSITIONS = {
    TournamentStatus.UPCOMING: {TournamentStatus.ONGOING, TournamentStatus.CANCELLED},
    TournamentStatus.ONGOING: {TournamentStatus.COMPLETED, TournamentStatus.CANCELLED},
    TournamentStatus.COMPLETED: set(),
    TournamentStatus.CANCELLED: set(),
}


class TournamentService:
    """Service for tournaments and their registrations."""

    def __init__(self, clock: Clock = system_clock, notifier: NotificationService = notification_service):
        self.clock = clock
        self.notifier = notifier

    async def create_tournament(self, db: AsyncSession, organizer: User, data: TournamentCreate) -> Tournament:
        """
        Create a tournament awaiting admin approval.

        Raises:
            ValidationException: If the dates are inconsistent
        """
        start = ensure_utc(data.start_date)
        end = ensure_utc(data.end_date)
        deadline = ensure_utc(data.registration_deadline)
        self._check_dates(start, end, deadline)

        tournament = Tournament(
            organizer_id=organizer.id,
            title=data.title,
            location=data.location,
            start_date=start,
            end_date=end,
            registration_deadline=deadline,
            entry_fee=data.entry_fee,
            skill_level=data.skill_level.value,
            max_participants=data.max_participants,
        )
        db.add(tournament)
        await db.commit()
        await db.refresh(tournament)
        logger.info(f"Tournament {tournament.id} ({tournament.title}) created by organizer {organizer.id}")

        await self.notifier.notify(
            db,
            await self.notifier.admin_ids(db),
            NotificationType.TOURNAMENT,
            "Tournament awaiting approval",
            f'New tournament "{tournament.title}" submitted for approval',
            data={"tournament_id": tournament.id},
        )
        return tournament

    def _check_dates(
        self, start: datetime, end: datetime, deadline: datetime, future_start: bool = True, future_deadline: bool = True
    ) -> None:
        now = self.clock.now()
        if future_start and start <= now:
            raise ValidationException("Start date must be in the future", code="INVALID_TOURNAMENT_DATES")
        if end <= start:
            raise ValidationException("End date must be after start date", code="INVALID_TOURNAMENT_DATES")
        if future_deadline and deadline <= now:
            raise ValidationException(
                "Registration deadline must be in the future", code="INVALID_TOURNAMENT_DATES"
            )
        if deadline >= start:
            raise ValidationException(
                "Registration deadline must be before start date", code="INVALID_TOURNAMENT_DATES"
            )

    async def get_tournament(self, db: AsyncSession, tournament_id: int) -> Tournament:
        result = await db.execute(select(Tournament).where(Tournament.id == tournament_id))
        tournament = result.scalar_one_or_none()
        if not tournament:
            raise NotFoundException(
                "Tournament not found",
                code="TOURNAMENT_NOT_FOUND",
                details={"tournament_id": tournament_id},
            )
        return tournament

    async def get_managed_tournament(self, db: AsyncSession, user: User, tournament_id: int) -> Tournament:
        tournament = await self.get_tournament(db, tournament_id)
        if user.role != UserRole.ADMIN.value and tournament.organizer_id != user.id:
            raise NotFoundException(
                "Tournament not found",
                code="TOURNAMENT_NOT_FOUND",
                details={"tournament_id": tournament_id},
            )
        return tournament

    async def list_tournaments(
        self,
        db: AsyncSession,
        status: Optional[TournamentStatus] = TournamentStatus.UPCOMING,
        approved_only: bool = True,
        skip: int = 0,
        limit: int = 10,
    ) -> List[Tournament]:
        query = select(Tournament)
        if status is not None:
            query = query.where(Tournament.status == status.value)
        if approved_only:
            query = query.where(Tournament.is_approved.is_(True))
        result = await db.execute(query.order_by(Tournament.start_date).offset(skip).limit(limit))
        return list(result.scalars().all())

    async def approve_tournament(self, db: AsyncSession, tournament_id: int) -> Tournament:
        tournament = await self.get_tournament(db, tournament_id)
        tournament.is_approved = True
        await db.commit()
        await db.refresh(tournament)

        await self.notifier.notify(
            db,
            [tournament.organizer_id],
            NotificationType.TOURNAMENT,
            "Tournament approved",
            f'Your tournament "{tournament.title}" has been approved',
            data={"tournament_id": tournament.id},
        )
        return tournament

    async def update_tournament(
        self, db: AsyncSession, user: User, tournament_id: int, data: TournamentUpdate
    ) -> Tournament:
        """
        Edit an upcoming tournament.

        Any edit sends the tournament back for admin approval.

        Raises:
            NotFoundException: If the tournament does not exist or is not the caller's
            TournamentNotModifiableException: If the tournament is not upcoming
            ValidationException: If the resulting dates are inconsistent
        """
        tournament = await self.get_managed_tournament(db, user, tournament_id)
        if tournament.status != TournamentStatus.UPCOMING.value:
            raise TournamentNotModifiableException(tournament_id, tournament.status)

        changes = data.model_dump(exclude_unset=True)
        for field in ("start_date", "end_date", "registration_deadline"):
            if field in changes:
                changes[field] = ensure_utc(changes[field])
        self._check_dates(
            changes.get("start_date", ensure_utc(tournament.start_date)),
            changes.get("end_date", ensure_utc(tournament.end_date)),
            changes.get("registration_deadline", ensure_utc(tournament.registration_deadline)),
            future_start="start_date" in changes,
            future_deadline="registration_deadline" in changes,
        )
        if "skill_level" in changes:
            changes["skill_level"] = changes["skill_level"].value

        for field, value in changes.items():
            setattr(tournament, field, value)
        tournament.is_approved = False
        await db.commit()
        await db.refresh(tournament)
        logger.info(f"Tournament {tournament.id} updated by user {user.id}: {sorted(changes)}")

        await self.notifier.notify(
            db,
            await self.notifier.admin_ids(db),
            NotificationType.TOURNAMENT,
            "Tournament awaiting approval",
            f'Tournament "{tournament.title}" was edited and needs approval',
            data={"tournament_id": tournament.id},
        )
        return tournament

    async def change_status(
        self, db: AsyncSession, user: User, tournament_id: int, status: TournamentStatus
    ) -> Tournament:
        """
        Move a tournament through upcoming -> ongoing -> completed, or cancel it.

        Registrants are notified when a tournament is cancelled.
        """
        tournament = await self.get_managed_tournament(db, user, tournament_id)
        current = TournamentStatus(tournament.status)
        if status not in _STATUS_TRANSITIONS[current]:
            raise InvalidTournamentTransitionException(tournament_id, current.value, status.value)

        tournament.status = status.value
        await db.commit()
        await db.refresh(tournament)
        logger.info(f"Tournament {tournament.id} status {current.value} -> {status.value}")

        if status == TournamentStatus.CANCELLED:
            result = await db.execute(
                select(Registration.user_id).where(Registration.tournament_id == tournament_id).distinct()
            )
            await self.notifier.notify(
                db,
                list(result.scalars().all()),
                NotificationType.TOURNAMENT,
                "Tournament cancelled",
                f'Tournament "{tournament.title}" has been cancelled',
                data={"tournament_id": tournament.id},
            )
        return tournament

    async def delete_tournament(self, db: AsyncSession, user: User, tournament_id: int) -> None:
        """
        Delete a tournament that has not started and has no registrations.

        Raises:
            TournamentNotModifiableException: If the tournament is ongoing or completed
            TournamentHasRegistrationsException: If anyone has registered
        """
        tournament = await self.get_managed_tournament(db, user, tournament_id)
        if tournament.status in (TournamentStatus.ONGOING.value, TournamentStatus.COMPLETED.value):
            raise TournamentNotModifiableException(tournament_id, tournament.status)

        result = await db.execute(
            select(func.count(Registration.id)).where(Registration.tournament_id == tournament_id)
        )
        registrations = result.scalar_one()
        if registrations:
            raise TournamentHasRegistrationsException(tournament_id, registrations)

        await db.delete(tournament)
        await db.commit()
        logger.info(f"Tournament {tournament_id} deleted by user {user.id}")

    async def count_registrations(self, db: AsyncSession, tournament_id: int) -> int:
        result = await db.execute(
            select(func.count(Registration.id)).where(
                Registration.tournament_id == tournament_id,
                Registration.status.in_(_COUNTED_REGISTRATION_STATUSES),
            )
        )
        return result.scalar_one()

    async def registration_closed_reason(self, db: AsyncSession, tournament: Tournament) -> Optional[str]:
        """Why registration is closed, or None when it is open."""
        if not tournament.is_approved:
            return "not_approved"
        if tournament.status != TournamentStatus.UPCOMING.value:
            return "not_upcoming"
        if self.clock.now() > ensure_utc(tournament.registration_deadline):
            return "deadline_passed"
        if tournament.max_participants is not None:
            if await self.count_registrations(db, tournament.id) >= tournament.max_participants:
                return "full"
        return None

    async def register(
        self, db: AsyncSession, user: User, tournament_id: int, data: RegistrationCreate
    ) -> Registration:
        """
        Register for a tournament.

        Raises:
            NotFoundException: If the tournament does not exist
            RegistrationClosedException: If registration is not open
            DuplicateRegistrationException: If the email is already registered
        """
        tournament = await self.get_tournament(db, tournament_id)

        reason = await self.registration_closed_reason(db, tournament)
        if reason:
            raise RegistrationClosedException(tournament_id, reason)

        existing = await db.execute(
            select(Registration.id).where(
                Registration.tournament_id == tournament_id,
                Registration.email == data.email,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateRegistrationException(tournament_id, data.email)

        registration = Registration(
            tournament_id=tournament_id,
            user_id=user.id,
            name=data.name,
            email=data.email,
            phone=data.phone,
            team_name=data.team_name,
            skill_level=data.skill_level.value,
            partner_name=data.partner_name,
            partner_email=data.partner_email,
            partner_phone=data.partner_phone,
            payment_method=data.payment_method.value,
            payment_amount=tournament.entry_fee,
            registration_notes=data.registration_notes,
        )
        db.add(registration)
        try:
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            raise DuplicateRegistrationException(tournament_id, data.email) from exc
        await db.refresh(registration)
        logger.info(f"Registration {registration.id} for tournament {tournament_id} ({data.email})")

        await self.notifier.notify(
            db,
            [tournament.organizer_id],
            NotificationType.TOURNAMENT,
            "New registration",
            f'New registration for tournament "{tournament.title}"',
            data={"tournament_id": tournament_id, "registration_id": registration.id},
        )
        return registration

    async def list_registrations(self, db: AsyncSession, user: User, tournament_id: int) -> List[Registration]:
        await self.get_managed_tournament(db, user, tournament_id)
        result = await db.execute(
            select(Registration)
            .where(Registration.tournament_id == tournament_id)
            .order_by(Registration.created_at.desc(), Registration.id.desc())
        )
        return list(result.scalars().all())

    async def update_payment(
        self, db: AsyncSession, user: User, registration_id: int, data: RegistrationPaymentUpdate
    ) -> Registration:
        """Record the organizer's payment decision for a registration."""
        result = await db.execute(select(Registration).where(Registration.id == registration_id))
        registration = result.scalar_one_or_none()
        if not registration:
            raise NotFoundException(
                "Registration not found",
                code="REGISTRATION_NOT_FOUND",
                details={"registration_id": registration_id},
            )
        await self.get_managed_tournament(db, user, registration.tournament_id)

        registration.payment_status = data.payment_status.value
        if data.payment_proof_url:
            registration.payment_proof_url = data.payment_proof_url

        if data.payment_status == RegistrationPaymentStatus.PAID:
            registration.status = RegistrationStatus.CONFIRMED.value
        elif data.payment_status == RegistrationPaymentStatus.FAILED:
            registration.status = RegistrationStatus.REJECTED.value
        elif data.payment_status == RegistrationPaymentStatus.REFUNDED:
            registration.status = RegistrationStatus.CANCELLED.value
            registration.refund_amount = registration.payment_amount
            registration.refund_status = "processed"

        await db.commit()
        await db.refresh(registration)
        logger.info(f"Registration {registration.id} payment -> {registration.payment_status}")

        await self.notifier.notify(
            db,
            [registration.user_id],
            NotificationType.PAYMENT,
            "Registration payment updated",
            f"Your registration payment status is now {registration.payment_status}",
            data={"registration_id": registration.id},
        )
        return registration


# Singleton instance
tournament_service = TournamentService()
