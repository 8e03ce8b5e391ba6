"""Domain models for the basketswap rebalancer."""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def parse_uint(value: Any) -> int:
    """Parse a base-unit amount given as int, decimal string or 0x-prefixed hex."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValueError("amount must be an integer, not a boolean")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        parsed = int(text, 16) if text.lower().startswith("0x") else int(text)
    else:
        raise ValueError(f"cannot parse amount from {type(value).__name__}")
    if parsed < 0:
        raise ValueError("amount must be non-negative")
    return parsed


class TokenRecord(BaseModel):
    """Normalized token balance from the external portfolio feed.

    Accepts the feed's own field names (``tokenAddress``, ``balanceUSD``,
    ``imgUrlV2``, nested ``network.name``) as well as our snake_case names.
    """

    address: str = Field(alias="tokenAddress")
    symbol: str
    name: str = ""
    decimals: int = 18
    verified: bool = False
    price: float = 0.0
    balance: float = 0.0
    balance_usd: float = Field(0.0, alias="balanceUSD")
    balance_raw: str = Field("0", alias="balanceRaw")
    logo_url: Optional[str] = Field(None, alias="imgUrlV2")
    network_name: Optional[str] = Field(None, alias="networkName")

    model_config = {"populate_by_name": True}

    @model_validator(mode="before")
    @classmethod
    def flatten_feed_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        network = data.pop("network", None)
        if isinstance(network, dict) and "networkName" not in data:
            data["networkName"] = network.get("name")
        if "tokenAddress" not in data and "address" in data:
            data["tokenAddress"] = data.pop("address")
        if "imgUrlV2" not in data and "logoUrl" in data:
            data["imgUrlV2"] = data.pop("logoUrl")
        # Feeds send explicit nulls for unknown fields
        for key, default in (("decimals", 18), ("verified", False), ("price", 0.0),
                             ("balance", 0.0), ("balanceUSD", 0.0), ("balanceRaw", "0")):
            if key in data and data[key] is None:
                data[key] = default
        return data


class PortfolioFeed(BaseModel):
    """Raw balance snapshot for one owner address."""

    total_balance_usd: float = Field(0.0, alias="totalBalanceUSD")
    tokens: list[TokenRecord] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class AssetHolding(BaseModel):
    """One asset position with its current allocation percentage."""

    address: str
    symbol: str
    name: str = ""
    decimals: int = 18
    balance: float = 0.0
    balance_usd: float = 0.0
    price: float = 0.0
    percentage: float = 0.0
    locked: bool = False
    logo_url: Optional[str] = None
    verified: bool = False


class SwapAction(BaseModel):
    """A planned exchange of one holding for another."""

    from_address: str
    to_address: str
    from_symbol: str
    to_symbol: str
    from_amount: float  # token units
    from_amount_usd: float

    model_config = {"frozen": True}


class RebalancePlan(BaseModel):
    """Ordered swap list produced by a planning run."""

    swaps: list[SwapAction] = Field(default_factory=list)
    total_value_usd: float = 0.0

    @property
    def total_swaps(self) -> int:
        return len(self.swaps)

    @property
    def is_balanced(self) -> bool:
        return not self.swaps


class TransactionRequest(BaseModel):
    to: str
    data: str
    value: int = 0
    from_address: Optional[str] = Field(None, alias="from")
    chain_id: Optional[int] = Field(None, alias="chainId")
    gas_limit: Optional[int] = Field(None, alias="gasLimit")

    model_config = {"populate_by_name": True}

    @field_validator("value", "gas_limit", mode="before")
    @classmethod
    def parse_amount(cls, v):
        if v is None:
            return v
        return parse_uint(v)


class QuoteEstimate(BaseModel):
    approval_address: str = Field("", alias="approvalAddress")
    from_amount: int = Field(alias="fromAmount")
    to_amount: int = Field(alias="toAmount")
    to_amount_min: int = Field(0, alias="toAmountMin")

    model_config = {"populate_by_name": True}

    @field_validator("from_amount", "to_amount", "to_amount_min", mode="before")
    @classmethod
    def parse_amount(cls, v):
        return parse_uint(v)

    @field_validator("approval_address", mode="before")
    @classmethod
    def empty_when_missing(cls, v):
        return v or ""


class QuoteToken(BaseModel):
    address: str
    symbol: str
    decimals: int = 18


class QuoteAction(BaseModel):
    from_token: QuoteToken = Field(alias="fromToken")
    to_token: QuoteToken = Field(alias="toToken")

    model_config = {"populate_by_name": True}


class SwapQuote(BaseModel):
    """Executable quote returned by the external quote service."""

    transaction_request: TransactionRequest = Field(alias="transactionRequest")
    estimate: QuoteEstimate
    action: Optional[QuoteAction] = None

    model_config = {"populate_by_name": True}

    def expected_output(self) -> Optional[float]:
        """Expected destination amount in token units, when the quote carries decimals."""
        if self.action is None:
            return None
        return self.estimate.to_amount / 10 ** self.action.to_token.decimals


class SwapWithQuote(BaseModel):
    action: SwapAction
    quote: SwapQuote
    needs_approval: bool


class BatchCall(BaseModel):
    """One call inside an atomically submitted batch."""

    to: str
    data: str
    value: int = Field(0, ge=0)
    description: str = ""

    def as_payload(self) -> dict:
        return {"to": self.to, "data": self.data, "value": hex(self.value)}


class TokenListEntry(BaseModel):
    """Static token-list record used to add zero-balance assets."""

    address: str
    symbol: str
    name: str = ""
    decimals: int = 18
    logo_uri: Optional[str] = Field(None, alias="logoURI")
    tags: list[str] = Field(default_factory=list)
    chain_id: Optional[int] = Field(None, alias="chainId")

    model_config = {"populate_by_name": True}


class TransferInstruction(BaseModel):
    """One leg of a batch send."""

    recipient: str = ""
    token_address: str = ""
    amount: float = 0.0
