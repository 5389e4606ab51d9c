from sqlalchemy import BigInteger, DateTime, func, JSON, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import mapped_column, Mapped
from datetime import datetime
from typing import Any, Optional
from typing_extensions import Annotated

# JSONB on postgres, plain JSON elsewhere
JsonColumnType = JSON().with_variant(JSONB(), "postgresql")

# Primary key types
StringPrimaryKeyType = Mapped[Annotated[str, mapped_column(String, primary_key=True)]]

# Normal types
BigIntegerType = Mapped[Annotated[int, mapped_column(BigInteger)]]
JsonType = Mapped[Annotated[Any, mapped_column(JsonColumnType)]]
StringType = Mapped[Annotated[str, mapped_column(String)]]

# Nullable types
NullableStringType = Mapped[
    Annotated[Optional[str], mapped_column(String, nullable=True)]
]

# Timestamp types
# Set by the database on insert, never by the processor
CreatedAtType = Mapped[
    Annotated[
        Optional[datetime],
        mapped_column(
            DateTime(timezone=True), nullable=True, server_default=func.now()
        ),
    ]
]
UpdatedAtType = Mapped[
    Annotated[
        datetime,
        mapped_column(
            DateTime(timezone=True),
            default=func.now(),
            onupdate=func.now(),
        ),
    ]
]
