import logging
from datetime import datetime
from typing import Callable, Iterable

from doconcall.core.ids import new_id
from doconcall.scheduling import slot_generator
from doconcall.scheduling.errors import ReservationError, SlotBooked, SlotNotFound
from doconcall.scheduling.store import AtomicUnit, SqlAlchemyStore
from doconcall.scheduling.types import RecurringSlotConfig, Slot, SlotCreationResult, SlotInput

logger = logging.getLogger(__name__)


class AvailabilityService:
    def __init__(
        self,
        store: SqlAlchemyStore,
        clock: Callable[[], datetime] = datetime.now,
        id_generator: Callable[[], str] = new_id,
    ) -> None:
        self.store = store
        self.clock = clock
        self.id_generator = id_generator

    def create_slot(self, doctor_id: str, slot_input: SlotInput) -> str:
        now = self.clock()
        slot_generator.validate_slot_input(slot_input, now)
        slot = self.store.add_slot(doctor_id, self.id_generator(), slot_input, now)
        return slot.id

    def create_slots(self, doctor_id: str, slot_inputs: Iterable[SlotInput]) -> SlotCreationResult:
        """Create each slot independently; one failure never undoes another."""
        result = SlotCreationResult()

        for slot_input in slot_inputs:
            try:
                slot_id = self.create_slot(doctor_id, slot_input)
            except ReservationError as exc:
                result.failed += 1
                logger.warning('Could not create slot %s-%s for doctor %s: %s', slot_input.start, slot_input.end, doctor_id, exc.detail)
                continue
            result.created.append(slot_id)
            result.succeeded += 1

        return result

    def generate_recurring_slots(self, doctor_id: str, recurring: RecurringSlotConfig) -> SlotCreationResult:
        candidates, rejected = slot_generator.generate(recurring, self.clock())
        result = self.create_slots(doctor_id, candidates)
        result.failed += rejected

        logger.info(
            'Recurring availability for doctor %s: %s created, %s failed',
            doctor_id, result.succeeded, result.failed,
        )
        return result

    def delete_slot(self, doctor_id: str, slot_id: str) -> None:
        def remove(unit: AtomicUnit) -> None:
            slot = unit.get_slot(doctor_id, slot_id)
            if slot is None:
                raise SlotNotFound()
            if slot.booked or not unit.delete_unbooked_slot(doctor_id, slot_id):
                raise SlotBooked()

        self.store.run_atomic(remove)
        logger.info('Deleted slot %s for doctor %s', slot_id, doctor_id)

    def list_slots(self, doctor_id: str, future_only: bool = False, unbooked_only: bool = False) -> list[Slot]:
        return self.store.list_slots(
            doctor_id,
            future_only=future_only,
            unbooked_only=unbooked_only,
            now=self.clock(),
        )

    def list_available_slots(self, doctor_id: str) -> list[Slot]:
        return self.list_slots(doctor_id, future_only=True, unbooked_only=True)
