"""Unit tests for typed form events and the event bus."""

from decimal import Decimal

from app.forms.events import (
    ApplicantTypeChanged,
    EventBus,
    Formatted,
    RawValueUpdated,
    SelectionChange,
    Validated,
)


class TestEventPayloads:
    def test_identifiers(self) -> None:
        assert ApplicantTypeChanged.identifier() == "applicant-type:applicantTypeChanged"
        assert SelectionChange.identifier() == "guardian-picker:selectionChange"
        assert Validated.identifier() == "income-validation:validated"
        assert RawValueUpdated.identifier() == "currency-formatter:rawValueUpdated"
        assert Formatted.identifier() == "currency-formatter:formatted"

    def test_detail_uses_camel_case_keys(self) -> None:
        assert ApplicantTypeChanged(is_dependent_selected=True).detail() == {
            "isDependentSelected": True
        }
        assert SelectionChange(selected_value=False).detail() == {"selectedValue": False}
        validated = Validated(
            exceeds_threshold=True,
            income=Decimal(9000),
            threshold=Decimal(8000),
            household_size=1,
        )
        assert validated.detail() == {
            "exceedsThreshold": True,
            "income": Decimal(9000),
            "threshold": Decimal(8000),
            "householdSize": 1,
        }


class TestEventBus:
    def test_subscribers_receive_only_their_event_type(self) -> None:
        bus = EventBus()
        received: list[object] = []
        bus.subscribe(SelectionChange, received.append)

        bus.publish(ApplicantTypeChanged(is_dependent_selected=True))
        bus.publish(SelectionChange(selected_value=True))

        assert received == [SelectionChange(selected_value=True)]

    def test_unsubscribe(self) -> None:
        bus = EventBus()
        received: list[object] = []
        unsubscribe = bus.subscribe(SelectionChange, received.append)

        unsubscribe()
        unsubscribe()
        bus.publish(SelectionChange(selected_value=True))

        assert received == []

    def test_failing_subscriber_does_not_block_others(self) -> None:
        bus = EventBus()
        received: list[object] = []

        def explode(event: SelectionChange) -> None:
            raise RuntimeError("boom")

        bus.subscribe(SelectionChange, explode)
        bus.subscribe(SelectionChange, received.append)
        bus.publish(SelectionChange(selected_value=True))

        assert received == [SelectionChange(selected_value=True)]

    def test_history(self) -> None:
        bus = EventBus()
        bus.publish(SelectionChange(selected_value=True))
        bus.publish(ApplicantTypeChanged(is_dependent_selected=False))

        assert len(bus.history()) == 2
        assert bus.history(ApplicantTypeChanged) == [
            ApplicantTypeChanged(is_dependent_selected=False)
        ]
        bus.clear_history()
        assert bus.history() == []

    def test_history_keeps_only_recent_events(self) -> None:
        bus = EventBus(history_size=3)
        for index in range(10):
            bus.publish(SelectionChange(selected_value=index % 2 == 0))
        bus.publish(ApplicantTypeChanged(is_dependent_selected=True))

        assert len(bus.history()) == 3
        assert bus.history()[-1] == ApplicantTypeChanged(is_dependent_selected=True)

    def test_history_disabled(self) -> None:
        bus = EventBus(history_size=0)
        received: list[object] = []
        bus.subscribe(SelectionChange, received.append)

        bus.publish(SelectionChange(selected_value=True))

        assert bus.history() == []
        assert received == [SelectionChange(selected_value=True)]
