import os

from ..commons import init_logger

DEFAULT_POLL_INTERVAL = 2
DEFAULT_MAX_ATTEMPTS = 20


class AthenaConfiguration:
    def __init__(self, log_level=None, environ=None):
        """
        Athena config stores the parameters that bound the query polling loop
        :param log_level: level the class logger should log at
        :param environ: mapping to read settings from, defaults to os.environ
        """
        self._environ = os.environ if environ is None else environ
        self.log_level = log_level or self._environ.get("LOG_LEVEL", "INFO")
        self._logger = init_logger(__name__, self.log_level)

        self._poll_interval = None
        self._max_attempts = None

    @property
    def poll_interval(self):
        if self._poll_interval is None:
            self._poll_interval = float(self._environ.get("POLL_INTERVAL", DEFAULT_POLL_INTERVAL))
        return self._poll_interval

    @property
    def max_attempts(self):
        if self._max_attempts is None:
            value = int(self._environ.get("MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))
            if value < 1:
                self._logger.warning("MAX_ATTEMPTS=%s is not positive, using 1", value)
                value = 1
            self._max_attempts = value
        return self._max_attempts
