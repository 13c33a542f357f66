"""Template column service for formula integrity.

Renaming or deleting a NUMBER column has to be carried into every FORMULA
column that references it. The writes go out one at a time and are not
transactional: when one fails, earlier writes stay applied and the rest
of the cascade still runs. The returned ``CascadeResult`` says which
columns were written and which were not, and its column list reflects
only the writes that succeeded.
"""

from dataclasses import dataclass, field
from typing import Any, Protocol

from pytemplate.core.exceptions import ColumnUpdateError, FormulaValidationError, NotFoundError
from pytemplate.core.logging import get_logger
from pytemplate.formula.dependencies import FormulaDependencyGraph
from pytemplate.formula.model import FormulaData
from pytemplate.formula.parser import parse_formula
from pytemplate.formula.serializer import stringify_formula
from pytemplate.formula.validator import (
    references_column,
    remove_column_references,
    rename_column_references,
    validate_formula,
)
from pytemplate.schemas.column import TemplateColumn, formula_candidates

logger = get_logger(__name__)


class ColumnRepository(Protocol):
    """Persistence for template columns (normally the template REST API)."""

    async def update_column(self, column_id: str, payload: dict[str, Any]) -> Any: ...

    async def delete_column(self, column_id: str) -> Any: ...


@dataclass
class CascadeResult:
    """Outcome of a rename or delete and the formula updates it triggered."""

    columns: list[TemplateColumn]
    updated: list[str] = field(default_factory=list)
    failed: list[ColumnUpdateError] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failed

    @property
    def failed_ids(self) -> list[str]:
        return [error.details["column_id"] for error in self.failed]


class TemplateColumnService:
    """Service for column changes that must keep formulas consistent."""

    def __init__(self, repository: ColumnRepository) -> None:
        self.repository = repository

    def build_formula_payload(
        self,
        formula_data: FormulaData,
        columns: list[TemplateColumn],
        editing_id: str | None = None,
        column_key: str | None = None,
    ) -> str:
        """
        Serialize a formula for submission, refusing invalid formulas.

        Args:
            formula_data: Formula built in the editor
            columns: All columns of the template
            editing_id: ID of the column being edited, excluded as an operand
            column_key: Key of the column being edited, for error details

        Returns:
            Canonical formula string

        Raises:
            FormulaValidationError: If the formula does not validate

        """
        candidates = formula_candidates(columns, exclude_id=editing_id)
        error = validate_formula(formula_data, candidates)
        if error is not None:
            raise FormulaValidationError(error, column_key=column_key)
        return stringify_formula(formula_data)

    async def rename_column(
        self,
        columns: list[TemplateColumn],
        column_id: str,
        new_key: str,
    ) -> CascadeResult:
        """Change a column's key and patch every formula that references the old key.

        Args:
            columns: Current columns of the template
            column_id: ID of the column being renamed
            new_key: Replacement key

        Returns:
            Cascade result

        Raises:
            NotFoundError: If the column is not on the template
            ColumnUpdateError: If the renamed column itself cannot be written

        """
        column = self._get_column(columns, column_id)
        old_key = column.key
        if old_key == new_key:
            return CascadeResult(columns=list(columns))

        await self._write(column, key=new_key)
        updated_columns = [
            c.model_copy(update={"key": new_key}) if c.id == column_id else c for c in columns
        ]
        result = CascadeResult(columns=updated_columns, updated=[column_id])

        for formula_column in list(updated_columns):
            if formula_column.id == column_id or not formula_column.is_formula:
                continue
            if not references_column(formula_column.formula, old_key):
                continue

            formula = rename_column_references(formula_column.formula, old_key, new_key)
            await self._apply_formula(result, formula_column, formula)

        logger.info(
            f"Renamed column {old_key} -> {new_key}",
            extra={"updated": len(result.updated), "failed": len(result.failed)},
        )
        return result

    async def delete_column(
        self,
        columns: list[TemplateColumn],
        column_id: str,
    ) -> CascadeResult:
        """Delete a column and drop the formula steps that referenced it.

        Each referencing step is removed together with one adjoining
        operator. A formula left without steps is stored as an empty string.

        Args:
            columns: Current columns of the template
            column_id: ID of the column being deleted

        Returns:
            Cascade result

        Raises:
            NotFoundError: If the column is not on the template
            ColumnUpdateError: If the deletion itself fails

        """
        column = self._get_column(columns, column_id)
        try:
            await self.repository.delete_column(column_id)
        except Exception as e:
            raise ColumnUpdateError(column_id, str(e)) from e

        remaining = [c for c in columns if c.id != column_id]
        result = CascadeResult(columns=remaining)

        for formula_column in list(remaining):
            if not formula_column.is_formula:
                continue
            if not references_column(formula_column.formula, column.key):
                continue

            data = parse_formula(formula_column.formula)
            if data is None:
                logger.warning(
                    f"Skipping unparseable formula on column {formula_column.key}",
                    extra={"formula": formula_column.formula},
                )
                continue

            cleaned = remove_column_references(data, column.key)
            formula = stringify_formula(cleaned) if cleaned.steps else ""
            if formula == formula_column.formula:
                continue
            await self._apply_formula(result, formula_column, formula)

        logger.info(
            f"Deleted column {column.key}",
            extra={"updated": len(result.updated), "failed": len(result.failed)},
        )
        return result

    def find_circular_references(self, columns: list[TemplateColumn]) -> list[str]:
        """Report FORMULA columns that take part in a reference cycle."""
        cycles = FormulaDependencyGraph.from_columns(columns).find_circular_references()
        if cycles:
            logger.warning("Circular formula references detected", extra={"columns": cycles})
        return cycles

    async def _apply_formula(
        self,
        result: CascadeResult,
        formula_column: TemplateColumn,
        formula: str,
    ) -> None:
        """Write one cascaded formula, recording the outcome on ``result``."""
        try:
            await self._write(formula_column, formula=formula)
        except ColumnUpdateError as e:
            logger.warning(
                f"Cascade update failed for column {formula_column.key}",
                exc_info=True,
            )
            result.failed.append(e)
            return

        result.columns = [
            c.model_copy(update={"formula": formula}) if c.id == formula_column.id else c
            for c in result.columns
        ]
        result.updated.append(formula_column.id)

    async def _write(self, column: TemplateColumn, **overrides: Any) -> None:
        try:
            await self.repository.update_column(column.id, column.to_payload(**overrides))
        except Exception as e:
            raise ColumnUpdateError(column.id, str(e)) from e

    @staticmethod
    def _get_column(columns: list[TemplateColumn], column_id: str) -> TemplateColumn:
        for column in columns:
            if column.id == column_id:
                return column
        raise NotFoundError(column_id=column_id)
