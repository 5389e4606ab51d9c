"""
Typed view of the checkpoints handed to the processor.

The layout follows the full checkpoint content served by a Sui full node:
a checkpoint summary plus, for each executed transaction, the signed
transaction, its effects, its events and the input/output object sets.
Effects, events and objects are kept as opaque JSON-like payloads; only the
parts the processor inspects (sender, gas, transaction kind and commands) are
modelled field by field.
"""

from typing import Any, List, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import Annotated


class MoveCall(BaseModel):
    kind: Literal["MoveCall"] = "MoveCall"
    package: str
    module: str
    function: str
    type_arguments: List[str] = []
    arguments: List[Any] = []


class TransferObjects(BaseModel):
    kind: Literal["TransferObjects"] = "TransferObjects"
    objects: List[Any] = []
    address: Any = None


class SplitCoins(BaseModel):
    kind: Literal["SplitCoins"] = "SplitCoins"
    coin: Any = None
    amounts: List[Any] = []


class MergeCoins(BaseModel):
    kind: Literal["MergeCoins"] = "MergeCoins"
    destination: Any = None
    sources: List[Any] = []


class Publish(BaseModel):
    kind: Literal["Publish"] = "Publish"
    modules: List[str] = []
    dependencies: List[str] = []


class MakeMoveVec(BaseModel):
    kind: Literal["MakeMoveVec"] = "MakeMoveVec"
    type_tag: Optional[str] = None
    elements: List[Any] = []


class Upgrade(BaseModel):
    kind: Literal["Upgrade"] = "Upgrade"
    modules: List[str] = []
    dependencies: List[str] = []
    package: Optional[str] = None
    ticket: Any = None


Command = Annotated[
    Union[
        MoveCall,
        TransferObjects,
        SplitCoins,
        MergeCoins,
        Publish,
        MakeMoveVec,
        Upgrade,
    ],
    Field(discriminator="kind"),
]


class ProgrammableTransaction(BaseModel):
    kind: Literal["ProgrammableTransaction"] = "ProgrammableTransaction"
    inputs: List[Any] = []
    commands: List[Command] = []


# ChangeEpoch, Genesis, ConsensusCommitPrologue, AuthenticatorStateUpdate, ...
class SystemTransaction(BaseModel):
    model_config = ConfigDict(extra="allow")

    kind: str

    @field_validator("kind")
    @classmethod
    def not_programmable(cls, kind: str) -> str:
        # A programmable transaction that failed validation must not land here
        if kind == "ProgrammableTransaction":
            raise ValueError("ProgrammableTransaction is not a system transaction kind")
        return kind


TransactionKind = Annotated[
    Union[ProgrammableTransaction, SystemTransaction],
    Field(union_mode="left_to_right"),
]


U64 = Annotated[int, Field(ge=0, le=2**64 - 1)]


class TransactionData(BaseModel):
    sender: str
    gas_budget: U64
    gas_price: U64
    kind: TransactionKind
    gas_owner: Optional[str] = None
    expiration: Any = None

    def move_calls(self) -> List[Tuple[str, str, str]]:
        """(package, module, function) for every Move call command, in order."""
        if not isinstance(self.kind, ProgrammableTransaction):
            return []
        return [
            (command.package, command.module, command.function)
            for command in self.kind.commands
            if isinstance(command, MoveCall)
        ]


class SenderSignedTransaction(BaseModel):
    digest: str
    data: TransactionData
    tx_signatures: List[str] = []


class CheckpointTransaction(BaseModel):
    transaction: SenderSignedTransaction
    effects: Any = None
    events: Any = None
    input_objects: List[Any] = []
    output_objects: List[Any] = []


class CheckpointSummary(BaseModel):
    sequence_number: int
    epoch: int = 0
    timestamp_ms: int = 0
    digest: Optional[str] = None


class CheckpointData(BaseModel):
    checkpoint_summary: CheckpointSummary
    transactions: List[CheckpointTransaction] = []
