"""Formula parser for PyTemplate.

Turns a stored formula string back into ``FormulaData``. Two encodings
are accepted:

- the canonical string, e.g. ``ROUND((qty_0 × rate_0) + 10%, 2)``
- legacy JSON, e.g. ``{"steps": ["qty_0"], "operators": [], "modifiers": []}``

Parsing fails soft: malformed input yields None, never an exception.
"""

from typing import Any

import orjson
from lark import Lark, Token, Transformer, v_args
from lark.exceptions import LarkError

from pytemplate.core.config import settings
from pytemplate.core.logging import get_logger
from pytemplate.formula.constants import ModifierType, Operator, symbol_to_operator
from pytemplate.formula.grammar import FORMULA_GRAMMAR
from pytemplate.formula.model import FormulaData, FormulaModifier, FormulaStep

logger = get_logger(__name__)


def _to_number(token: Token) -> int | float:
    value = float(token)
    # Keep as int if no fractional part
    if value.is_integer():
        return int(value)
    return value


class FormulaTransformer(Transformer):
    """Transform the Lark parse tree into FormulaData."""

    def start(self, items: list[Any]) -> FormulaData:
        return items[0]

    def chain(self, items: list[Any]) -> FormulaData:
        data = FormulaData()
        for item in items:
            if isinstance(item, Operator):
                data.operators.append(item)
            else:
                data.steps.append(FormulaStep(column_key=str(item)))
        return data

    @v_args(inline=True)
    def operator(self, token: Token) -> Operator:
        return symbol_to_operator(str(token))

    @v_args(inline=True)
    def sign(self, token: Token) -> Operator:
        return symbol_to_operator(str(token))

    def wrapped(self, items: list[Any]) -> FormulaData:
        data, *offsets = items
        data.modifiers.extend(offsets)
        return data

    # Offsets appended after a group or function call
    @v_args(inline=True)
    def percentage_offset(self, sign: Operator, number: Token, _percent: Token) -> FormulaModifier:
        return FormulaModifier(type=ModifierType.PERCENTAGE, operator=sign, value=_to_number(number))

    @v_args(inline=True)
    def fixed_offset(self, sign: Operator, number: Token) -> FormulaModifier:
        return FormulaModifier(type=ModifierType.FIXED, operator=sign, value=_to_number(number))

    # Function wrappers; the wrapper was applied after everything inside it
    @v_args(inline=True)
    def round_fn(self, inner: FormulaData, decimals: Token) -> FormulaData:
        return self._wrap(inner, ModifierType.ROUND, _to_number(decimals))

    @v_args(inline=True)
    def abs_fn(self, inner: FormulaData) -> FormulaData:
        return self._wrap(inner, ModifierType.ABS)

    @v_args(inline=True)
    def ceil_fn(self, inner: FormulaData) -> FormulaData:
        return self._wrap(inner, ModifierType.CEIL)

    @v_args(inline=True)
    def floor_fn(self, inner: FormulaData) -> FormulaData:
        return self._wrap(inner, ModifierType.FLOOR)

    @v_args(inline=True)
    def min_cap_fn(self, inner: FormulaData, bound: Token) -> FormulaData:
        # MAX(expr, v) keeps the result from dropping below v
        return self._wrap(inner, ModifierType.MIN, _to_number(bound))

    @v_args(inline=True)
    def max_cap_fn(self, inner: FormulaData, bound: Token) -> FormulaData:
        # MIN(expr, v) keeps the result from exceeding v
        return self._wrap(inner, ModifierType.MAX, _to_number(bound))

    @staticmethod
    def _wrap(inner: FormulaData, modifier_type: ModifierType, value: Any = 0) -> FormulaData:
        inner.modifiers.append(
            FormulaModifier(type=modifier_type, operator=Operator.ADD, value=value)
        )
        return inner


class FormulaParser:
    """
    Parser for template formulas.

    Parses canonical formula strings and legacy JSON into FormulaData.
    """

    def __init__(self) -> None:
        self._parser = Lark(
            FORMULA_GRAMMAR,
            parser="lalr",
            transformer=FormulaTransformer(),
        )

    def parse(self, formula: str | None) -> FormulaData | None:
        """
        Parse a stored formula.

        Args:
            formula: Canonical formula string, legacy JSON, or None

        Returns:
            FormulaData, or None if the input is empty or malformed
        """
        if not formula:
            return None

        trimmed = formula.strip()
        if not trimmed:
            return None

        if len(trimmed) > settings.formula_max_length:
            logger.debug(
                "Formula rejected: too long",
                extra={"length": len(trimmed), "max_length": settings.formula_max_length},
            )
            return None

        if trimmed.startswith("{"):
            legacy = self._parse_legacy_json(trimmed)
            if legacy is not None:
                return legacy

        try:
            return self._parser.parse(trimmed)
        except LarkError as e:
            logger.debug("Formula could not be parsed", extra={"formula": trimmed, "error": str(e)})
            return None

    def _parse_legacy_json(self, formula: str) -> FormulaData | None:
        """Decode the JSON encoding used before the canonical string existed."""
        try:
            payload = orjson.loads(formula)
        except orjson.JSONDecodeError:
            return None

        if not isinstance(payload, dict) or not isinstance(payload.get("steps"), list):
            return None

        try:
            return FormulaData(
                steps=[_legacy_step(step) for step in payload["steps"]],
                operators=[_legacy_operator(op) for op in payload.get("operators") or []],
                modifiers=[_legacy_modifier(mod) for mod in payload.get("modifiers") or []],
            )
        except (TypeError, AttributeError) as e:
            logger.debug("Legacy formula JSON is malformed", extra={"error": str(e)})
            return None


def _legacy_step(step: Any) -> FormulaStep:
    if isinstance(step, dict):
        step = step.get("columnKey", step.get("column_key", ""))
    if not isinstance(step, str):
        raise TypeError(f"Step must be a column key, got {type(step).__name__}")
    return FormulaStep(column_key=step)


def _legacy_operator(op: Any) -> Operator | str:
    try:
        return Operator(op)
    except ValueError:
        return symbol_to_operator(op) or op if isinstance(op, str) else op


def _legacy_modifier(mod: dict[str, Any]) -> FormulaModifier:
    raw_type = mod.get("type")
    try:
        modifier_type: ModifierType | str = ModifierType(raw_type)
    except ValueError:
        modifier_type = raw_type

    raw_operator = mod.get("operator")
    try:
        operator: Operator | str | None = Operator(raw_operator)
    except ValueError:
        operator = raw_operator

    return FormulaModifier(type=modifier_type, operator=operator, value=mod.get("value"))


# Lark grammar compilation is comparatively slow, so build the parser once
_parser: FormulaParser | None = None


def _get_parser() -> FormulaParser:
    """Lazy load the shared parser."""
    global _parser
    if _parser is None:
        _parser = FormulaParser()
    return _parser


def parse_formula(formula: str | None) -> FormulaData | None:
    """Parse a stored formula string into FormulaData, or None if it is unusable."""
    return _get_parser().parse(formula)
