"""Runtime settings for the ledger reporting engine."""

import os
from dataclasses import dataclass
from datetime import tzinfo
from typing import Mapping, Optional

from dateutil import tz

from finledger.domain.errors import ConfigurationError

DEFAULT_TIMEZONE = "Asia/Seoul"
DEFAULT_TRANSFER_WINDOW_SECONDS = 900
DEFAULT_OTHER_SOURCE_NAME = "기타"
DEFAULT_INTERNAL_SOURCE_NAME = "내부 이체"


@dataclass(frozen=True)
class LedgerSettings:
    """Settings shared by every report run.

    Attributes:
        timezone: Zone whose calendar dates key daily balances and periods
        transfer_window_seconds: Maximum time gap between internal transfer legs
        other_source_name: Income source used when no alias pattern matches
        internal_source_name: Income source that marks owner-internal movement
    """

    timezone: str = DEFAULT_TIMEZONE
    transfer_window_seconds: int = DEFAULT_TRANSFER_WINDOW_SECONDS
    other_source_name: str = DEFAULT_OTHER_SOURCE_NAME
    internal_source_name: str = DEFAULT_INTERNAL_SOURCE_NAME

    def __post_init__(self):
        if tz.gettz(self.timezone) is None:
            raise ConfigurationError(f"Unknown timezone '{self.timezone}'")
        if isinstance(self.transfer_window_seconds, bool) or not isinstance(
            self.transfer_window_seconds, int
        ):
            raise ConfigurationError(
                f"Transfer window must be an integer number of seconds, got {self.transfer_window_seconds!r}"
            )
        if self.transfer_window_seconds <= 0:
            raise ConfigurationError("Transfer window must be positive")
        if not self.other_source_name.strip():
            raise ConfigurationError("Other income source name must not be blank")
        if not self.internal_source_name.strip():
            raise ConfigurationError("Internal income source name must not be blank")
        if self.other_source_name == self.internal_source_name:
            raise ConfigurationError(
                "Other and internal income source names must differ"
            )

    @property
    def tzinfo(self) -> tzinfo:
        """Resolved ledger time zone."""
        return tz.gettz(self.timezone)

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides
    ) -> "LedgerSettings":
        """Build settings from FINLEDGER_* environment variables.

        Keyword overrides that are not None take precedence over the environment.

        Raises:
            ConfigurationError: If a value is malformed
        """
        if environ is None:
            environ = os.environ

        values: dict = {}
        if environ.get("FINLEDGER_TIMEZONE"):
            values["timezone"] = environ["FINLEDGER_TIMEZONE"]
        if environ.get("FINLEDGER_TRANSFER_WINDOW"):
            raw_window = environ["FINLEDGER_TRANSFER_WINDOW"]
            try:
                values["transfer_window_seconds"] = int(raw_window)
            except ValueError:
                raise ConfigurationError(
                    f"FINLEDGER_TRANSFER_WINDOW must be an integer, got '{raw_window}'"
                )
        if environ.get("FINLEDGER_OTHER_SOURCE"):
            values["other_source_name"] = environ["FINLEDGER_OTHER_SOURCE"]
        if environ.get("FINLEDGER_INTERNAL_SOURCE"):
            values["internal_source_name"] = environ["FINLEDGER_INTERNAL_SOURCE"]

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)
