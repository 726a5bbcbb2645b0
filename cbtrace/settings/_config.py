from copy import deepcopy
from typing import Any  # noqa:F401
from typing import Dict  # noqa:F401
from typing import Optional  # noqa:F401

from ..internal.logger import get_logger
from ._core import config as core_config
from .integration import IntegrationConfig


log = get_logger(__name__)

INTEGRATION_CONFIGS = frozenset(["couchbase"])


def _deepmerge(source, destination):
    """
    Merge the first provided ``dict`` into the second.

    :param dict source: The ``dict`` to merge into ``destination``
    :param dict destination: The ``dict`` that should get updated
    :rtype: dict
    :returns: ``destination`` modified
    """
    for key, value in source.items():
        if isinstance(value, dict):
            node = destination.setdefault(key, {})
            _deepmerge(value, node)
        else:
            destination[key] = value

    return destination


class Config(object):
    """Configuration object that exposes an API to set and retrieve
    global settings for each integration. All integrations must use
    this instance to register their defaults, so that they're public
    available and can be updated by users.
    """

    def __init__(self):
        # use a dict as underlying storing mechanism for integration configs
        self._integration_configs = {}  # type: Dict[str, IntegrationConfig]

        self.service = core_config.service
        self.env = core_config.env
        self.version = core_config.version
        self._tracing_enabled = core_config.tracing_enabled
        self.context_propagation = core_config.context_propagation

    def __getattr__(self, name):
        # type: (str) -> Any
        if name.startswith("__"):
            raise AttributeError(name)
        integration_configs = self.__dict__.get("_integration_configs")
        if integration_configs is None:
            raise AttributeError(name)
        if name in integration_configs:
            return integration_configs[name]
        if name in INTEGRATION_CONFIGS:
            # Allows for accessing integration configs before an integration is patched
            integration_configs[name] = IntegrationConfig(self, name)
            return integration_configs[name]
        raise AttributeError(
            "%s object has no attribute %s, %s is not a valid configuration" % (type(self), name, name)
        )

    def _add(self, integration, settings, merge=True):
        # type: (str, Dict[str, Any], bool) -> None
        """Internal API that registers an integration with given default
        settings.

        :param str integration: The integration name (i.e. `couchbase`)
        :param dict settings: A dictionary that contains integration settings;
            to preserve immutability of these values, the dictionary is copied
            since it contains integration defaults.
        :param bool merge: Whether to merge any existing settings with those provided,
            or if we should overwrite the settings with those provided;
            Note: when merging existing settings take precedence.
        """
        if integration not in INTEGRATION_CONFIGS:
            log.error(
                "%s not found in INTEGRATION_CONFIGS, the following settings will be ignored: %s", integration, settings
            )
            return

        existing = getattr(self, integration)
        settings = deepcopy(settings)

        if merge:
            # DEV: `existing` is the source so that settings changed by the user
            #   are never overwritten by integration defaults. Unset values do not count.
            #
            # >>> config.couchbase['service'] = 'my-couchbase'
            # >>> config._add('couchbase', dict(service='couchbase'))
            # >>> config.couchbase['service']
            # 'my-couchbase'
            user_settings = {k: v for k, v in existing.items() if v is not None}
            self._integration_configs[integration] = IntegrationConfig(
                self, integration, _deepmerge(user_settings, settings)
            )
        else:
            self._integration_configs[integration] = IntegrationConfig(self, integration, settings)

    def _get_service(self, default=None):
        # type: (Optional[str]) -> Optional[str]
        """
        Returns the globally configured service or the default if none is configured.
        """
        return self.service if self.service is not None else default

    def __repr__(self):
        cls = self.__class__
        integrations = ", ".join(self._integration_configs.keys())
        return "{}.{}({})".format(cls.__module__, cls.__name__, integrations)


config = Config()
