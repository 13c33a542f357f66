"""Lark grammar definition for canonical template formulas.

Examples of canonical strings:
- Simple:        qty_0 × rate_0
- With modifier: (qty_0 × rate_0) + 10%
- With function: ROUND((qty_0 × rate_0) + 10%, 2)
- Complex:       ABS(ROUND((qty_0 + rate_0) − 100, 2))

A bare step chain is only legal when there are no modifiers. Once any
modifier is present the chain is parenthesized, and percentage/fixed
offsets may only follow a parenthesized group or a function call. That
is what separates ``(a) + 5`` (a fixed offset) from ``a + b`` (two steps).
"""

# Lark grammar for canonical formula strings
FORMULA_GRAMMAR = r"""
    start: formula

    ?formula: chain
        | wrapped

    wrapped: term offset*

    ?term: "(" chain ")"
        | "ROUND" "(" formula "," NUMBER ")" -> round_fn
        | "ABS" "(" formula ")" -> abs_fn
        | "CEIL" "(" formula ")" -> ceil_fn
        | "FLOOR" "(" formula ")" -> floor_fn
        | "MAX" "(" formula "," NUMBER ")" -> min_cap_fn
        | "MIN" "(" formula "," NUMBER ")" -> max_cap_fn

    offset: sign NUMBER MOD -> percentage_offset
        | sign NUMBER -> fixed_offset

    chain: KEY (operator KEY)*

    operator: ADD | SUB | MUL | DIV | MOD | POW

    sign: ADD | SUB

    // Operator glyphs, with the ASCII spellings accepted as fallbacks
    ADD: "+"
    SUB: "−" | "-"
    MUL: "×" | "*"
    DIV: "÷" | "/"
    MOD: "%"
    POW: "^"

    // Column keys are lower-case machine identifiers
    KEY: /[a-z0-9_]+/

    // Signed so negative caps and offsets survive a round trip
    NUMBER: /-?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?/

    %import common.WS
    %ignore WS
"""
