"""Startup validation of the registered entities' procedures.

Each registered entity is expected to have select, upsert and delete
procedures named by the convention. Depending on ``ValidationConfig.mode``
the expected names are only logged (LIST) or looked up in the catalog
(CATALOG). A lookup that raises is logged and counted as missing. With
``fail_on_missing`` set, any missing procedure raises MissingProceduresError
naming all of them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from proc_forge.core.config import ForgeOptions
from proc_forge.core.enums import ValidationMode
from proc_forge.core.exceptions import MissingProceduresError
from proc_forge.diagnostics.diagnostics import LOG_PREFIX
from proc_forge.validation.catalog import (
    AsyncCatalogValidator,
    CatalogValidator,
    create_async_catalog_validator,
    create_catalog_validator,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of one validation run."""

    mode: ValidationMode
    expected: tuple[str, ...] = ()
    validated: tuple[str, ...] = ()
    missing: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.missing


def expected_procedures(options: ForgeOptions) -> list[str]:
    """Select, upsert and delete names of every registered entity, without duplicates."""
    convention = options.naming_convention()
    names: list[str] = []
    for entity in options.registered_entities:
        for name in convention.expected_names(entity):
            if name not in names:
                names.append(name)
    return names


class _StartupBase:
    def __init__(self, options: ForgeOptions, log: logging.Logger | None = None) -> None:
        self._options = options
        self._logger = log or logger

    def _expected(self) -> list[str] | None:
        """Expected names, or None when there is nothing to check against the catalog."""
        mode = self._options.validation.mode
        if mode is ValidationMode.DISABLED:
            self._logger.debug("%s Stored procedure validation disabled", LOG_PREFIX)
            return None
        if not self._options.registered_entities:
            self._logger.info(
                "%s No entities registered for stored procedure validation", LOG_PREFIX
            )
            return None

        names = expected_procedures(self._options)
        self._logger.info(
            "%s Validating %d stored procedure(s) for %d entities",
            LOG_PREFIX,
            len(names),
            len(self._options.registered_entities),
        )
        if mode is ValidationMode.LIST:
            for name in names:
                self._logger.info("%s Expected SP: %s", LOG_PREFIX, name, extra={"sp_name": name})
            return None
        return names

    def _skipped(self) -> ValidationReport:
        mode = self._options.validation.mode
        if mode is ValidationMode.LIST and self._options.registered_entities:
            return ValidationReport(mode, expected=tuple(expected_procedures(self._options)))
        return ValidationReport(mode)

    def _log_result(self, name: str, found: bool) -> None:
        if found:
            self._logger.info("%s SP validated: %s", LOG_PREFIX, name, extra={"sp_name": name})
        else:
            self._logger.warning("%s SP missing: %s", LOG_PREFIX, name, extra={"sp_name": name})

    def _log_lookup_error(self, name: str) -> None:
        self._logger.exception(
            "%s Could not check SP: %s", LOG_PREFIX, name, extra={"sp_name": name}
        )

    def _finish(self, names: list[str], missing: list[str]) -> ValidationReport:
        validated = [name for name in names if name not in missing]
        self._logger.info(
            "%s Validation complete: %d validated, %d missing",
            LOG_PREFIX,
            len(validated),
            len(missing),
        )
        if missing and self._options.validation.fail_on_missing:
            raise MissingProceduresError(missing)
        return ValidationReport(
            self._options.validation.mode,
            expected=tuple(names),
            validated=tuple(validated),
            missing=tuple(missing),
        )


class StartupValidator(_StartupBase):
    """Validates expected procedures with a CatalogValidator.

    Args:
        options: The configuration; its ``validation`` section selects the mode.
        validator: Catalog validator override; created from
            ``options.connection`` when omitted.
        log: Logger override.
    """

    def __init__(
        self,
        options: ForgeOptions,
        validator: CatalogValidator | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(options, log)
        self._validator = validator

    def run(self) -> ValidationReport:
        """Run validation.

        Raises:
            MissingProceduresError: If procedures are missing and
                ``fail_on_missing`` is set.
        """
        names = self._expected()
        if names is None:
            return self._skipped()

        validator = self._validator or create_catalog_validator(self._options.connection)
        missing: list[str] = []
        for name in names:
            try:
                found = validator.exists(name)
            except Exception:
                self._log_lookup_error(name)
                found = False
            self._log_result(name, found)
            if not found:
                missing.append(name)
        return self._finish(names, missing)


class AsyncStartupValidator(_StartupBase):
    """Async counterpart of StartupValidator."""

    def __init__(
        self,
        options: ForgeOptions,
        validator: AsyncCatalogValidator | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(options, log)
        self._validator = validator

    async def run(self) -> ValidationReport:
        names = self._expected()
        if names is None:
            return self._skipped()

        validator = self._validator or create_async_catalog_validator(self._options.connection)
        missing: list[str] = []
        for name in names:
            try:
                found = await validator.exists(name)
            except Exception:
                self._log_lookup_error(name)
                found = False
            self._log_result(name, found)
            if not found:
                missing.append(name)
        return self._finish(names, missing)
