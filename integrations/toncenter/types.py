from typing import Optional

from pydantic import BaseModel, Field


class BlockRef(BaseModel):
    """Reference to the masterchain block the snapshot was taken at."""

    seqno: int
    shard: str
    root_hash: str
    file_hash: str


class AccountBalance(BaseModel):
    coins: str = Field(..., description="Balance in nanotons.")
    currencies: dict[str, str] = Field(
        default_factory=dict, description="Extra currencies held by the account."
    )


class AccountState(BaseModel):
    type: str = Field(..., description="Contract status: active, uninit or frozen.")
    code: Optional[str] = Field(None, description="Code cell (base64 BoC).")
    data: Optional[str] = Field(None, description="Data cell (base64 BoC).")


class AccountSnapshot(BaseModel):
    address: str
    balance: AccountBalance
    state: AccountState
    block: BlockRef
