from __future__ import annotations

import json
import os
from typing import TYPE_CHECKING, Any

from rulesmith import __version__

if TYPE_CHECKING:
    from rulesmith.core._types import AssetQueryOperator, Side
    from rulesmith.core.model import AssetTypeInfo, AttributeDescriptor, ValueDescriptor

_GREEN = "\033[32m"
_CYAN = "\033[36m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RESET = "\033[0m"

_LINE_WIDTH = 66


def _use_color(no_color_flag: bool) -> bool:
    if no_color_flag:
        return False
    return not os.environ.get("NO_COLOR", "")


def _c(text: str, code: str, *, color: bool) -> str:
    if not color:
        return text
    return f"{code}{text}{_RESET}"


def _header(title: str, *, color: bool) -> str:
    header = f"── {title} "
    fill = "─" * max(0, _LINE_WIDTH - len(header))
    return _c(header + fill, _BOLD, color=color)


def _attribute_detail(attr: AttributeDescriptor) -> str:
    parts: list[str] = []
    if attr.type:
        parts.append(attr.type)
    if attr.units:
        parts.append("units=" + ",".join(attr.units))
    if attr.constraints:
        parts.append("constraints=" + ",".join(str(c.get("type", "?")) for c in attr.constraints))
    return "  ".join(parts)


def format_infos_text(
    infos: list[AssetTypeInfo],
    *,
    side: Side,
    catalog_path: str,
    no_color: bool = False,
) -> str:
    color = _use_color(no_color)
    lines: list[str] = []
    w = lines.append

    w(f"rulesmith {__version__}")
    w("")
    w(f"Resolving {catalog_path} for '{side}' ...")

    for info in infos:
        descriptor = info.asset_descriptor
        extras: list[str] = []
        if descriptor.icon:
            extras.append(f"icon={descriptor.icon}")
        if descriptor.colour:
            extras.append(f"colour={descriptor.colour}")
        w("")
        w(_header(info.name, color=color))
        if extras:
            w(f"  {_c('  '.join(extras), _DIM, color=color)}")
        if not info.attribute_descriptors:
            w("  (no attributes)")
            continue
        name_w = max(len(a.name) for a in info.attribute_descriptors)
        for attr in info.attribute_descriptors:
            name = _c(attr.name.ljust(name_w), _CYAN, color=color)
            w(f"  {name}  {_attribute_detail(attr)}".rstrip())

    w("")
    noun = "asset type" if len(infos) == 1 else "asset types"
    w(_c(f"{len(infos)} {noun} available.", _GREEN, color=color))
    return "\n".join(lines)


def _attribute_json(attr: AttributeDescriptor) -> dict[str, Any]:
    return {
        "name": attr.name,
        "type": attr.type,
        "format": attr.format,
        "units": list(attr.units),
        "constraints": list(attr.constraints),
    }


def format_infos_json(infos: list[AssetTypeInfo], *, side: Side) -> str:
    data = {
        "version": __version__,
        "side": str(side),
        "asset_types": [
            {
                "name": info.name,
                "icon": info.asset_descriptor.icon,
                "colour": info.asset_descriptor.colour,
                "attributes": [_attribute_json(a) for a in info.attribute_descriptors],
            }
            for info in infos
        ],
        "total": len(infos),
    }
    return json.dumps(data, indent=2)


def format_operators_text(
    value: ValueDescriptor,
    operators: tuple[AssetQueryOperator, ...],
    *,
    no_color: bool = False,
) -> str:
    color = _use_color(no_color)
    label = value.name if not value.json_type else f"{value.name} ({value.json_type})"
    lines = [_header(f"Operators for {label}", color=color), ""]
    lines.extend(f"  {op}" for op in operators)
    lines.append("")
    lines.append(f"{len(operators)} operators")
    return "\n".join(lines)


def format_operators_json(
    value: ValueDescriptor,
    operators: tuple[AssetQueryOperator, ...],
) -> str:
    data = {
        "version": __version__,
        "value_type": value.name,
        "json_type": value.json_type,
        "operators": [str(op) for op in operators],
        "total": len(operators),
    }
    return json.dumps(data, indent=2)
