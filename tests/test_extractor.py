import json
import pytest

from prometheus_client import REGISTRY
from processors.sui_package_indexer.extractor import (
    build_tx_kind_json,
    extract_checkpoint,
)
from processors.sui_package_indexer.package_matcher import MatchedCall
from pydantic import ValidationError
from tests.factories import (
    PACKAGE_P,
    PACKAGE_Q,
    SENDER,
    make_checkpoint,
    make_digest,
    make_transaction,
    move_call,
    transfer_only_transaction,
)
from utils.checkpoint_types import (
    CheckpointData,
    MakeMoveVec,
    MergeCoins,
    Publish,
    SplitCoins,
    SystemTransaction,
    TransferObjects,
    Upgrade,
)
from utils.errors import MalformedTransactionError


def metric_value(name: str, labels: dict) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestExtractCheckpoint:
    def test_transaction_without_move_calls_is_skipped(self):
        checkpoint = make_checkpoint(1, [transfer_only_transaction(1)])

        assert extract_checkpoint(checkpoint, PACKAGE_P) == []

    def test_system_transaction_is_skipped(self):
        checkpoint = make_checkpoint(
            1, [make_transaction(1, kind=SystemTransaction(kind="ChangeEpoch"))]
        )

        assert extract_checkpoint(checkpoint, PACKAGE_P) == []

    def test_transaction_calling_other_packages_is_skipped(self):
        checkpoint = make_checkpoint(
            1,
            [
                make_transaction(
                    1,
                    commands=[
                        move_call(PACKAGE_Q, "a", "b"),
                        move_call(PACKAGE_Q, "c", "d"),
                        move_call(PACKAGE_Q, "e", "f"),
                    ],
                )
            ],
        )

        assert extract_checkpoint(checkpoint, PACKAGE_P) == []

    def test_skip_reasons_are_counted_separately(self):
        no_calls_labels = {
            "processor_name": "sui_package_indexer",
            "reason": "no_move_calls",
        }
        no_match_labels = {
            "processor_name": "sui_package_indexer",
            "reason": "no_package_match",
        }
        name = "indexer_processor_skipped_transactions_total"
        no_calls_before = metric_value(name, no_calls_labels)
        no_match_before = metric_value(name, no_match_labels)

        checkpoint = make_checkpoint(
            1,
            [
                transfer_only_transaction(1),
                transfer_only_transaction(2),
                make_transaction(3, commands=[move_call(PACKAGE_Q)]),
            ],
        )
        extract_checkpoint(checkpoint, PACKAGE_P)

        assert metric_value(name, no_calls_labels) - no_calls_before == 2
        assert metric_value(name, no_match_labels) - no_match_before == 1

    def test_matching_transaction_yields_full_record_set(self):
        tx = make_transaction(
            1,
            commands=[move_call(PACKAGE_P, "m1", "f1")],
            events=[{"type": f"{PACKAGE_P}::m1::Minted", "parsed_json": {"id": 1}}],
            gas_budget=9_000_000_000,
            gas_price=1_000,
        )

        [record_set] = extract_checkpoint(make_checkpoint(42, [tx]), PACKAGE_P)

        digest = make_digest(1)
        assert record_set.tx_digest == digest
        transaction = record_set.transaction
        assert transaction.checkpoint_sequence_number == 42
        assert transaction.sender == SENDER
        assert transaction.gas_budget == 9_000_000_000
        assert transaction.gas_price == 1_000
        assert transaction.serialized_tx["digest"] == digest
        assert transaction.serialized_tx["data"]["sender"] == SENDER
        assert transaction.created_at is None

        assert record_set.effects.tx_digest == digest
        assert record_set.effects.effects_json == {
            "status": {"status": "success"},
            "executed_epoch": 7,
        }
        assert record_set.events is not None
        assert record_set.events.events_json[0]["parsed_json"] == {"id": 1}
        assert record_set.input_objects.objects_json == [
            {"object_id": "0x5", "version": 1}
        ]
        assert record_set.output_objects.objects_json == [
            {"object_id": "0x5", "version": 2}
        ]

    def test_events_record_only_when_transaction_has_events(self):
        tx = make_transaction(1, commands=[move_call(PACKAGE_P)], events=None)

        [record_set] = extract_checkpoint(make_checkpoint(1, [tx]), PACKAGE_P)

        assert record_set.events is None
        assert record_set.effects is not None
        assert record_set.input_objects is not None
        assert record_set.output_objects is not None

    def test_end_to_end_checkpoint_keeps_transaction_order(self):
        tx_a = make_transaction(1, commands=[move_call(PACKAGE_P, "m1", "f1")])
        tx_b = make_transaction(2, commands=[move_call(PACKAGE_Q, "m1", "f1")])
        tx_c = make_transaction(
            3,
            commands=[
                move_call(PACKAGE_Q, "x", "y"),
                move_call(PACKAGE_P, "m2", "f2"),
            ],
        )

        record_sets = extract_checkpoint(
            make_checkpoint(100, [tx_a, tx_b, tx_c]), PACKAGE_P
        )

        assert [r.tx_digest for r in record_sets] == [make_digest(1), make_digest(3)]
        assert all(
            r.transaction.checkpoint_sequence_number == 100 for r in record_sets
        )
        tx_kind_c = record_sets[1].transaction.tx_kind
        assert tx_kind_c["total_move_calls"] == 2
        assert tx_kind_c["matched_calls"] == [
            {"package_id": PACKAGE_P, "module": "m2", "function": "f2"}
        ]

    def test_programmable_transaction_projection(self):
        tx = make_transaction(
            1,
            commands=[
                move_call(PACKAGE_P, "m1", "f1"),
                TransferObjects(objects=[{"Result": 0}], address={"Input": 0}),
            ],
        )

        [record_set] = extract_checkpoint(make_checkpoint(1, [tx]), PACKAGE_P)

        tx_kind = record_set.transaction.tx_kind
        assert tx_kind["type"] == "ProgrammableTransaction"
        assert len(tx_kind["matched_calls"]) == 1
        assert tx_kind["total_move_calls"] == 1
        assert tx_kind["inputs"] == [{"Pure": [1, 2, 3]}]
        assert tx_kind["commands"] == [
            {
                "type": "MoveCall",
                "package": PACKAGE_P,
                "module": "m1",
                "function": "f1",
            },
            {"type": "TransferObjects"},
        ]

    def test_non_move_commands_carry_only_their_kind(self):
        tx = make_transaction(
            1,
            commands=[
                move_call(PACKAGE_P),
                SplitCoins(coin="GasCoin", amounts=[{"Input": 0}]),
                MergeCoins(destination={"Input": 1}, sources=[{"Input": 2}]),
                Publish(modules=["AAEC"], dependencies=["0x1"]),
                MakeMoveVec(type_tag="u64", elements=[{"Input": 3}]),
                Upgrade(modules=["AAEC"], package=PACKAGE_P, ticket={"Result": 0}),
            ],
        )

        [record_set] = extract_checkpoint(make_checkpoint(1, [tx]), PACKAGE_P)

        assert record_set.transaction.tx_kind["commands"][1:] == [
            {"type": "SplitCoins"},
            {"type": "MergeCoins"},
            {"type": "Publish"},
            {"type": "MakeMoveVec"},
            {"type": "Upgrade"},
        ]

    def test_serialization_failure_degrades_to_empty_value(self):
        labels = {"processor_name": "sui_package_indexer", "field": "effects"}
        name = "indexer_processor_serialization_failures_total"
        before = metric_value(name, labels)
        tx = make_transaction(1, commands=[move_call(PACKAGE_P)], effects=object())

        [record_set] = extract_checkpoint(make_checkpoint(1, [tx]), PACKAGE_P)

        assert record_set.effects.effects_json == {}
        assert record_set.transaction.serialized_tx["digest"] == make_digest(1)
        assert metric_value(name, labels) - before == 1

    def test_malformed_digest_aborts_checkpoint(self):
        checkpoint = make_checkpoint(
            77,
            [
                make_transaction(1, commands=[move_call(PACKAGE_P)]),
                make_transaction(2, commands=[move_call(PACKAGE_P)], digest="0OIl"),
            ],
        )

        with pytest.raises(MalformedTransactionError) as exc_info:
            extract_checkpoint(checkpoint, PACKAGE_P)

        assert exc_info.value.checkpoint_sequence_number == 77
        assert exc_info.value.value == "0OIl"

    def test_malformed_sender_aborts_checkpoint(self):
        checkpoint = make_checkpoint(
            5,
            [make_transaction(1, commands=[move_call(PACKAGE_P)], sender="0xnothex")],
        )

        with pytest.raises(MalformedTransactionError):
            extract_checkpoint(checkpoint, PACKAGE_P)

    def test_extraction_is_repeatable(self):
        checkpoint = make_checkpoint(
            1, [make_transaction(1, commands=[move_call(PACKAGE_P)])]
        )

        first = extract_checkpoint(checkpoint, PACKAGE_P)
        second = extract_checkpoint(checkpoint, PACKAGE_P)

        assert first[0].transaction.tx_kind == second[0].transaction.tx_kind
        assert first[0] is not second[0]

    def test_u64_gas_values_are_stored_as_signed_64_bit(self):
        checkpoint = make_checkpoint(
            1,
            [
                make_transaction(
                    1,
                    commands=[move_call(PACKAGE_P)],
                    gas_budget=2**64 - 1,
                    gas_price=2**63,
                )
            ],
        )

        [record_set] = extract_checkpoint(checkpoint, PACKAGE_P)

        assert record_set.transaction.gas_budget == -1
        assert record_set.transaction.gas_price == -(2**63)

    def test_gas_below_two_to_the_63_is_copied_verbatim(self):
        checkpoint = make_checkpoint(
            1,
            [
                make_transaction(
                    1, commands=[move_call(PACKAGE_P)], gas_budget=2**63 - 1
                )
            ],
        )

        [record_set] = extract_checkpoint(checkpoint, PACKAGE_P)

        assert record_set.transaction.gas_budget == 2**63 - 1
        assert record_set.transaction.gas_price == 750


class TestBuildTxKindJson:
    def test_other_transaction_kinds_get_generic_summary(self):
        matched = [MatchedCall(package_id=PACKAGE_P, module="m1", function="f1")]

        tx_kind = build_tx_kind_json(
            SystemTransaction(kind="ConsensusCommitPrologue"), matched, 3
        )

        assert tx_kind == {
            "type": "ConsensusCommitPrologue",
            "matched_calls": [
                {"package_id": PACKAGE_P, "module": "m1", "function": "f1"}
            ],
            "total_move_calls": 3,
        }


class TestCheckpointParsing:
    def checkpoint_json(self, mutate) -> str:
        checkpoint = make_checkpoint(
            1, [make_transaction(1, commands=[move_call(PACKAGE_P)])]
        )
        payload = checkpoint.model_dump(mode="json")
        mutate(payload["transactions"][0]["transaction"]["data"])
        return json.dumps(payload)

    def test_unknown_command_rejects_programmable_transaction(self):
        raw = self.checkpoint_json(
            lambda data: data["kind"]["commands"].append({"kind": "Foo"})
        )

        with pytest.raises(ValidationError):
            CheckpointData.model_validate_json(raw)

    def test_move_call_without_package_is_rejected(self):
        raw = self.checkpoint_json(
            lambda data: data["kind"]["commands"][0].pop("package")
        )

        with pytest.raises(ValidationError):
            CheckpointData.model_validate_json(raw)

    def test_valid_programmable_transaction_keeps_its_move_calls(self):
        checkpoint = CheckpointData.model_validate_json(
            self.checkpoint_json(lambda data: None)
        )

        data = checkpoint.transactions[0].transaction.data
        assert data.move_calls() == [(PACKAGE_P, "m1", "f1")]

    def test_system_transaction_still_parses(self):
        def to_system(data):
            data["kind"] = {"kind": "ChangeEpoch", "epoch": 8}

        checkpoint = CheckpointData.model_validate_json(self.checkpoint_json(to_system))

        kind = checkpoint.transactions[0].transaction.data.kind
        assert isinstance(kind, SystemTransaction)
        assert kind.kind == "ChangeEpoch"

    @pytest.mark.parametrize("gas_budget", [-1, 2**64])
    def test_gas_outside_u64_range_is_rejected(self, gas_budget):
        def set_gas(data):
            data["gas_budget"] = gas_budget

        with pytest.raises(ValidationError):
            CheckpointData.model_validate_json(self.checkpoint_json(set_gas))
