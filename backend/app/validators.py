"""Input validation and normalization for inventory payloads.

Node and edge payloads arrive as camelCase JSON from the dashboard. The
validators here check them field by field, collect every problem they find,
and hand back a snake_case dict ready for the inventory store.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationError as PydanticValidationError

from app.schemas.node import METADATA_MODELS, DeviceType, NodeStatus


CREATE = "create"
UPDATE = "update"

# Plain decimal quantities only: no sign, no exponent
STORAGE_PATTERN = re.compile(r"^\d+(\.\d+)?$")
NEGATIVE_STORAGE_PATTERN = re.compile(r"^-\d+(\.\d+)?$")

REQUIRED_FIELDS = {
    "name": "Name",
    "ip": "IP address",
    "osType": "OS type",
}

# Never taken from a client on update
READ_ONLY_FIELDS = ("id", "position", "createdAt", "updatedAt", "lastSeen")

STORAGE_FIELDS = {
    "storageTotal": ("storage_total", "Total storage"),
    "storageUsed": ("storage_used", "Used storage"),
}

LEGACY_SERVICE_NAME = "Web UI"


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class ValidationError(ValueError):
    """Raised when input validation fails.

    Carries every field-level problem found, not just the first one.
    """

    def __init__(self, message: str, errors: list[FieldError] | None = None):
        super().__init__(message)
        self.message = message
        self.errors: list[FieldError] = list(errors or [])

    @classmethod
    def from_errors(cls, errors: list[FieldError], subject: str = "node") -> "ValidationError":
        summary = "; ".join(f"{e.field}: {e.message}" for e in errors)
        return cls(f"Invalid {subject} data: {summary}", errors)

    def prefixed(self, prefix: str) -> list[FieldError]:
        return [FieldError(f"{prefix}{e.field}", e.message) for e in self.errors]


def validate_service_url(url: Any) -> str:
    """Validate an absolute service URL.

    The URL must carry both a scheme and a host (``https://nas.local:5000``).
    Returns the stripped URL.
    Raises ValidationError if invalid.
    """
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("Service URL is required")

    url = url.strip()
    if any(ch.isspace() for ch in url):
        raise ValidationError("Service URL cannot contain whitespace")

    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError("Service URL must be a valid absolute URL")

    return url


def validate_storage_quantity(value: Any, label: str = "Storage") -> float:
    """Validate a storage quantity in GB and return it as a float.

    Quantities are decimal strings such as ``"512"`` or ``"1.5"``.
    Raises ValidationError if the value is not a plain non-negative number.
    """
    text = _storage_text(value)
    if text is None:
        raise ValidationError(f"{label} must be a valid number")

    if NEGATIVE_STORAGE_PATTERN.match(text):
        raise ValidationError(f"{label} must be non-negative")

    if not STORAGE_PATTERN.match(text):
        raise ValidationError(f"{label} must be a valid number")

    number = float(text)
    if number < 0:
        raise ValidationError(f"{label} must be non-negative")
    return number


def _storage_text(value: Any) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        # Fixed-point, every digit of the shortest repr; no exponent
        return format(Decimal(repr(value)), "f")
    if isinstance(value, str):
        return value.strip()
    return None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_enum(field: str, value: Any, enum_cls, label: str, errors: list[FieldError]):
    allowed = [member.value for member in enum_cls]
    if value not in allowed:
        errors.append(FieldError(field, f"{label} must be one of: {', '.join(allowed)}"))
        return None
    return value


def _check_metadata(
    value: Any,
    device_type: str,
    errors: list[FieldError],
) -> dict[str, Any] | None:
    if not isinstance(value, dict):
        errors.append(FieldError("metadata", "Metadata must be an object"))
        return None

    model = METADATA_MODELS[DeviceType(device_type)]
    try:
        parsed = model.model_validate(value)
    except PydanticValidationError as exc:
        for err in exc.errors():
            loc = ".".join(str(part) for part in err["loc"])
            if err["type"] == "extra_forbidden":
                message = f"Not a valid field for {device_type} metadata"
            else:
                message = err["msg"]
            errors.append(FieldError(f"metadata.{loc}" if loc else "metadata", message))
        return None

    return parsed.model_dump(mode="json", by_alias=True, exclude_none=True)


def _check_tags(value: Any, errors: list[FieldError]) -> list[str] | None:
    if value is None:
        return []
    if isinstance(value, str):
        # The node form submits tags as one comma-separated field
        return [tag.strip() for tag in value.split(",") if tag.strip()]
    if not isinstance(value, list):
        errors.append(FieldError("tags", "Tags must be a list of strings"))
        return None

    tags: list[str] = []
    for index, tag in enumerate(value):
        if not isinstance(tag, str):
            errors.append(FieldError(f"tags[{index}]", "Tag must be a string"))
            continue
        tags.append(tag)
    return tags


def _check_services(value: Any, errors: list[FieldError]) -> list[dict[str, str]] | None:
    if value is None:
        return []
    if not isinstance(value, list):
        errors.append(FieldError("services", "Services must be a list"))
        return None

    services: list[dict[str, str]] = []
    for index, service in enumerate(value):
        if not isinstance(service, dict):
            errors.append(FieldError(f"services[{index}]", "Service must be an object with name and url"))
            continue

        name = service.get("name")
        valid = True
        if _is_blank(name) or not isinstance(name, str):
            errors.append(FieldError(f"services[{index}].name", "Service name is required"))
            valid = False

        try:
            url = validate_service_url(service.get("url"))
        except ValidationError as e:
            errors.append(FieldError(f"services[{index}].url", e.message))
            valid = False

        if valid:
            services.append({"name": name.strip(), "url": url})
    return services


def _check_position(value: Any, errors: list[FieldError]) -> dict[str, float] | None:
    if value is None:
        return {"x": 0.0, "y": 0.0}
    if not isinstance(value, dict):
        errors.append(FieldError("position", "Position must be an object with x and y"))
        return None

    position: dict[str, float] = {}
    for axis in ("x", "y"):
        coord = value.get(axis, 0)
        if isinstance(coord, bool) or not isinstance(coord, (int, float)):
            errors.append(FieldError(f"position.{axis}", "Coordinate must be a number"))
            continue
        position[axis] = float(coord)
    return position if len(position) == 2 else None


def _check_storage(
    merged: dict[str, Any],
    errors: list[FieldError],
) -> None:
    parsed: dict[str, float] = {}
    for field, (_, label) in STORAGE_FIELDS.items():
        value = merged.get(field)
        if _is_blank(value):
            continue
        try:
            parsed[field] = validate_storage_quantity(value, label)
        except ValidationError as e:
            errors.append(FieldError(field, e.message))

    if "storageTotal" in parsed and "storageUsed" in parsed:
        if parsed["storageUsed"] > parsed["storageTotal"]:
            errors.append(FieldError("storageUsed", "Used storage cannot exceed total storage"))


def validate_node_payload(
    payload: Any,
    mode: str = CREATE,
    existing: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Validate a node payload for create or update.

    ``payload`` uses the camelCase wire format. On update, ``existing`` is the
    stored node (as returned by the inventory store) so cross-field rules can
    see values the client did not resend.

    Returns a snake_case dict holding only the fields to write. On create every
    column is present with defaults filled in.
    Raises ValidationError listing every field that failed.
    """
    if mode not in (CREATE, UPDATE):
        raise ValueError(f"Unknown validation mode: {mode}")

    if not isinstance(payload, dict):
        raise ValidationError.from_errors([FieldError("body", "Node payload must be a JSON object")])

    existing = existing or {}
    data = dict(payload)
    data.pop("id", None)
    data.pop("createdAt", None)
    data.pop("updatedAt", None)
    data.pop("lastSeen", None)
    if mode == UPDATE:
        for field in READ_ONLY_FIELDS:
            data.pop(field, None)

    # Older exports carry a single serviceUrl instead of a services list
    legacy_url = data.pop("serviceUrl", None)
    if "services" not in data and not _is_blank(legacy_url):
        data["services"] = [{"name": LEGACY_SERVICE_NAME, "url": legacy_url}]

    errors: list[FieldError] = []
    result: dict[str, Any] = {}

    # 1. Required text fields
    for field, label in REQUIRED_FIELDS.items():
        if mode == UPDATE and field not in data:
            continue
        value = data.get(field)
        if not isinstance(value, str) or not value.strip():
            errors.append(FieldError(field, f"{label} is required"))
            continue
        result[_snake(field)] = value.strip()

    # 2. Enumerations
    device_type: str | None = None
    device_type_valid = True
    if data.get("deviceType") is not None:
        device_type = _check_enum("deviceType", data["deviceType"], DeviceType, "Device type", errors)
        device_type_valid = device_type is not None
        if device_type:
            result["device_type"] = device_type
    elif mode == CREATE:
        result["device_type"] = device_type = DeviceType.SERVER.value

    if data.get("status") is not None:
        status = _check_enum("status", data["status"], NodeStatus, "Status", errors)
        if status:
            result["status"] = status
    elif mode == CREATE:
        result["status"] = NodeStatus.UNKNOWN.value

    # Metadata and storage rules follow the type the node will have after the write
    effective_type = device_type or existing.get("deviceType") or DeviceType.SERVER.value

    if device_type_valid:
        if data.get("metadata") is not None:
            metadata = _check_metadata(data["metadata"], effective_type, errors)
            if metadata is not None:
                result["metadata"] = metadata
        elif "metadata" in data:
            result["metadata"] = None
        elif mode == UPDATE and device_type and existing.get("metadata"):
            # Device type changed without new metadata; the stored shape must still fit
            stored_errors: list[FieldError] = []
            _check_metadata(existing["metadata"], effective_type, stored_errors)
            if stored_errors:
                errors.append(FieldError(
                    "metadata",
                    f"Stored metadata does not match device type '{effective_type}'; send new metadata",
                ))
        elif mode == CREATE:
            result["metadata"] = None

    # 3. Tags
    if "tags" in data or mode == CREATE:
        tags = _check_tags(data.get("tags"), errors)
        if tags is not None:
            result["tags"] = tags

    # 4. Services
    if "services" in data or mode == CREATE:
        services = _check_services(data.get("services"), errors)
        if services is not None:
            result["services"] = services

    # 5. Storage, checked only for NAS devices
    # Other device types keep whatever was sent; the columns are text
    for field, (column, _) in STORAGE_FIELDS.items():
        if field not in data:
            continue
        value = data[field]
        if value is not None and not isinstance(value, str):
            value = _storage_text(value) or str(value)
        result[column] = value

    if device_type_valid and effective_type == DeviceType.NAS.value:
        merged = {
            field: data[field] if field in data else existing.get(field)
            for field in STORAGE_FIELDS
        }
        _check_storage(merged, errors)

    # Display-only extras
    if "uptime" in data:
        uptime = data["uptime"]
        if uptime is not None and not isinstance(uptime, str):
            errors.append(FieldError("uptime", "Uptime must be text"))
        else:
            result["uptime"] = uptime

    if mode == CREATE:
        position = _check_position(data.get("position"), errors)
        if position is not None:
            result["position"] = position

    if errors:
        raise ValidationError.from_errors(errors)

    return result


def validate_edge_payload(payload: Any) -> dict[str, Any]:
    """Validate an edge payload.

    ``source`` and ``target`` must be non-empty node ids. ``animated`` is kept
    as text; booleans are converted to ``"true"``/``"false"``.
    Raises ValidationError listing every field that failed.
    """
    if not isinstance(payload, dict):
        raise ValidationError.from_errors([FieldError("body", "Edge payload must be a JSON object")], "edge")

    errors: list[FieldError] = []
    result: dict[str, Any] = {}

    for field in ("source", "target"):
        value = payload.get(field)
        if not isinstance(value, str) or not value.strip():
            errors.append(FieldError(field, f"Edge {field} is required"))
        else:
            result[field] = value.strip()

    animated = payload.get("animated")
    if animated is None:
        result["animated"] = "false"
    elif isinstance(animated, bool):
        result["animated"] = "true" if animated else "false"
    elif isinstance(animated, str) and animated.strip().lower() in ("true", "false"):
        result["animated"] = animated.strip().lower()
    else:
        errors.append(FieldError("animated", "Animated must be true or false"))

    if errors:
        raise ValidationError.from_errors(errors, "edge")

    return result


def _snake(field: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", field).lower()
