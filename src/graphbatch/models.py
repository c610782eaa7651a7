import enum
import typing as t

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class HttpComponent(str, enum.Enum):
    STATUS = "status"
    HEADERS = "headers"
    BODY = "body"


def resolve_http_component(*, options: t.Mapping[str, t.Any]) -> HttpComponent:
    """
    Read the ``http_component`` selector from per-call options.

    Parameters
    ----------
    options : typing.Mapping[str, typing.Any]
        Per-call options with string keys.

    Returns
    -------
    HttpComponent
        Selected component, ``BODY`` when the option is absent.

    Raises
    ------
    ValueError
        If the selector is not one of status, headers or body.
    """
    value = options.get("http_component")
    if value is None:
        return HttpComponent.BODY
    if isinstance(value, HttpComponent):
        return value
    try:
        return HttpComponent(str(value).lower())
    except ValueError as error:
        supported = ", ".join(component.value for component in HttpComponent)
        raise ValueError(f"Unsupported http_component {value!r}, expected one of: {supported}") from error


class HeaderPair(BaseModel):
    name: str
    value: str


class BatchSlotResponse(BaseModel):
    """One non-null element of a composite batch response."""

    model_config = ConfigDict(extra="ignore")

    code: int
    body: str | None = None
    headers: list[HeaderPair] | None = None

    def header_map(self) -> dict[str, str]:
        return {header.name: header.value for header in self.headers or []}


class BatchCallDescriptor(BaseModel):
    """Per-call entry of the ``batch`` array sent to the service."""

    model_config = ConfigDict(extra="allow")

    method: t.Literal["get", "post", "delete", "put"]
    relative_url: str
    body: str | None = None
    name: str | None = None
    depends_on: str | None = None
    omit_response_on_success: bool | None = None
    attached_files: str | None = None

    def to_wire(self) -> dict[str, t.Any]:
        return self.model_dump(exclude_none=True)


class CallInput(BaseModel):
    """One line of a calls file fed to the CLI."""

    path: str
    args: dict[str, t.Any] = Field(default_factory=dict)
    method: str = "get"
    options: dict[str, t.Any] = Field(default_factory=dict)


call_input_list_adapter = TypeAdapter(list[CallInput])
