"""
Pydantic models for the agent builder SDK.

These models mirror the data structures exchanged with the agent builder
API. Validation is intentionally lenient: the server is the authority on
what a valid record looks like, these models only give callers typed access.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class APIModel(BaseModel):
    """Base for all wire models: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialize for a request body (aliased keys, unset fields dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# =============================================================================
# Enums
# =============================================================================


class Role(str, Enum):
    """Message role in a conversation."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class StreamEventKind(str, Enum):
    """Event kinds carried by the chat stream protocol."""

    TEXT = "text"
    REASONING = "reasoning"
    REDACTED_REASONING = "redacted_reasoning"
    REASONING_SIGNATURE = "reasoning_signature"
    SOURCE = "source"
    FILE = "file"
    DATA = "data"
    ANNOTATION = "annotation"
    ERROR = "error"
    TOOL_CALL_START = "tool_call_start"
    TOOL_CALL_DELTA = "tool_call_delta"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    STEP_START = "step_start"
    STEP_FINISH = "step_finish"
    MESSAGE_FINISH = "message_finish"


class OrderStatus(str, Enum):
    SHOPPING_CART = "shopping_cart"
    QUOTE = "quote"
    NEW = "new"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# =============================================================================
# Chat Models
# =============================================================================


class ChatAttachment(APIModel):
    """A file made available to the agent for the duration of a chat."""

    name: Optional[str] = Field(default=None, description="Display file name")
    content_type: Optional[str] = Field(default=None, description="MIME type")
    url: str = Field(..., description="Public URL or data URL of the file")


class ChatMessage(APIModel):
    """A single message in a conversation."""

    role: str = Field(..., description="Message role: user, assistant, or system")
    content: str = Field(..., description="Message content")
    name: Optional[str] = None
    function_call: Optional[Any] = None


class ChatRequestOptions(BaseModel):
    """Per-request options for the chat endpoint."""

    agent_id: str = Field(..., description="Agent that should answer")
    session_id: Optional[str] = Field(
        default=None, description="Continue an existing conversation"
    )
    headers: dict[str, str] = Field(
        default_factory=dict, description="Extra headers, override the defaults"
    )
    attachments: list[ChatAttachment] = Field(default_factory=list)


class StreamEvent(BaseModel):
    """One classified frame of the chat stream."""

    model_config = ConfigDict(frozen=True)

    kind: StreamEventKind
    content: Any = None

    @property
    def type(self) -> str:
        return self.kind.value


class ConversationState(BaseModel):
    """Message history after a collected chat exchange."""

    model_config = ConfigDict(frozen=True)

    messages: tuple[ChatMessage, ...] = ()
    session_id: Optional[str] = None

    @property
    def last_message(self) -> Optional[ChatMessage]:
        return self.messages[-1] if self.messages else None


# =============================================================================
# Resource Models
# =============================================================================


class Agent(APIModel):
    id: Optional[str] = None
    display_name: Optional[str] = None
    options: Optional[str] = None
    prompt: Optional[str] = None
    expected_result: Optional[str] = None
    safety_rules: Optional[str] = None
    published: Optional[str] = None
    events: Optional[str] = None
    tools: Optional[str] = None
    status: Optional[str] = None
    locale: Optional[str] = None
    agent_type: Optional[str] = None
    inputs: Optional[str] = None
    default_flow: Optional[str] = None
    flows: Optional[str] = None
    agents: Optional[str] = None
    icon: Optional[str] = None
    extra: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Key(APIModel):
    display_name: Optional[str] = None
    key_locator_hash: Optional[str] = None
    key_hash: Optional[str] = None
    key_hash_params: Optional[str] = None
    database_id_hash: Optional[str] = None
    encrypted_master_key: Optional[str] = None
    acl: Optional[str] = None
    extra: Optional[str] = None
    expiry_date: Optional[str] = None
    updated_at: Optional[str] = None


class Attachment(APIModel):
    id: Optional[int] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    mime_type: Optional[str] = None
    type: Optional[str] = None
    json_content: Optional[str] = Field(default=None, alias="json")
    extra: Optional[str] = None
    size: Optional[int] = None
    storage_key: Optional[str] = None
    file_path: Optional[str] = None
    content: Optional[str] = None
    assigned_to: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Session(APIModel):
    id: str
    agent_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    accept_terms: Optional[str] = None
    messages: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    finalized_at: Optional[str] = None


class Result(APIModel):
    agent_id: Optional[str] = None
    session_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    content: Optional[str] = None
    format: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    finalized_at: Optional[str] = None


class CalendarEvent(APIModel):
    id: Optional[str] = None
    title: Optional[str] = None
    agent_id: Optional[str] = None
    description: Optional[str] = None
    exclusive: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None
    location: Optional[str] = None
    all_day: Optional[bool] = None
    session_id: Optional[str] = None
    participants: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Price(APIModel):
    value: float = Field(..., ge=0)
    currency: str


class ProductAttribute(APIModel):
    name: str
    type: str = "text"
    values: Optional[list[str]] = None
    default_value: Optional[str] = None


class ProductVariant(APIModel):
    id: Optional[str] = None
    sku: str
    name: Optional[str] = None
    status: Optional[str] = None
    price: Optional[Price] = None
    price_incl_tax: Optional[Price] = None
    tax_rate: Optional[float] = None
    tax_value: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    length: Optional[float] = None
    weight: Optional[float] = None
    width_unit: Optional[str] = None
    height_unit: Optional[str] = None
    length_unit: Optional[str] = None
    weight_unit: Optional[str] = None
    brand: Optional[str] = None


class ProductImage(APIModel):
    id: Optional[str] = None
    url: str
    storage_key: Optional[str] = None
    alt: Optional[str] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None


class Product(ProductVariant):
    agent_id: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    attributes: Optional[list[ProductAttribute]] = None
    variants: Optional[list[ProductVariant]] = None
    images: Optional[list[ProductImage]] = None
    tags: Optional[list[str]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Address(APIModel):
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    company: Optional[str] = None
    country: Optional[Any] = None
    country_code: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    province: Optional[str] = None
    province_code: Optional[str] = None
    street: Optional[str] = None
    summary: Optional[str] = None
    postal_code: Optional[str] = None


class OrderNote(APIModel):
    date: str
    message: str
    author: Optional[str] = None


class OrderStatusChange(APIModel):
    date: str
    message: str
    old_status: Optional[str] = None
    new_status: str


class Customer(APIModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None


class OrderItem(APIModel):
    id: str
    name: Optional[str] = None
    product_sku: Optional[str] = None
    variant_sku: Optional[str] = None
    product_id: Optional[str] = None
    variant_id: Optional[str] = None
    variant_name: Optional[str] = None
    message: Optional[str] = None
    custom_options: Optional[list[dict[str, str]]] = None
    original_price: Optional[Price] = None
    price: Price
    price_incl_tax: Optional[Price] = None
    tax_value: Optional[Price] = None
    quantity: int = Field(..., ge=1)
    successfully_fulfilled_quantity: Optional[int] = Field(
        default=None, alias="successfully_fulfilled_quantity"
    )
    title: Optional[str] = None
    line_value: Optional[Price] = None
    line_value_incl_tax: Optional[Price] = None
    line_tax_value: Optional[Price] = None
    original_price_incl_tax: Optional[Price] = None
    tax_rate: Optional[float] = None
    variant: Optional[Any] = None


class Order(APIModel):
    id: Optional[str] = None
    agent_id: Optional[str] = None
    session_id: Optional[str] = None
    billing_address: Optional[Address] = None
    shipping_address: Optional[Address] = None
    attributes: Optional[dict[str, Any]] = None
    notes: Optional[list[OrderNote]] = None
    status_changes: Optional[list[OrderStatusChange]] = None
    status: OrderStatus = OrderStatus.SHOPPING_CART
    email: Optional[str] = None
    customer: Optional[Customer] = None
    subtotal: Optional[Price] = None
    sub_total_incl_tax: Optional[Price] = None
    subtotal_tax_value: Optional[Price] = None
    total: Optional[Price] = None
    total_incl_tax: Optional[Price] = None
    shipping_method: Optional[str] = None
    shipping_price: Optional[Price] = None
    shipping_price_incl_tax: Optional[Price] = None
    shipping_price_tax_rate: Optional[float] = None
    items: Optional[list[OrderItem]] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Audit(APIModel):
    id: Optional[int] = None
    ip: Optional[str] = None
    ua: Optional[str] = None
    key_locator_hash: Optional[str] = None
    database_id_hash: Optional[str] = None
    record_locator: Optional[str] = None
    diff: Optional[str] = None
    event_name: Optional[str] = None
    created_at: Optional[str] = None


class Stat(APIModel):
    """Token usage statistics for a single event."""

    id: Optional[int] = None
    event_name: str
    prompt_tokens: int = Field(..., ge=0)
    completion_tokens: int = Field(..., ge=0)
    finish_reasons: Optional[str] = None
    created_at: Optional[str] = None
    created_month: Optional[int] = None
    created_day: Optional[int] = None
    created_year: Optional[int] = None
    created_hour: Optional[int] = None
    counter: Optional[int] = None


class StatsPeriod(APIModel):
    overall_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    # the server spells it this way
    overall_usd: float = Field(default=0.0, alias="overalUSD")
    requests: int = 0


class AggregatedStats(APIModel):
    this_month: StatsPeriod = Field(default_factory=StatsPeriod)
    last_month: StatsPeriod = Field(default_factory=StatsPeriod)
    today: StatsPeriod = Field(default_factory=StatsPeriod)


# =============================================================================
# Memory Models
# =============================================================================


class VectorStoreEntry(APIModel):
    id: str
    content: str
    embedding: list[float] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
