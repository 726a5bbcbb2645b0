import os

from ..internal.utils.attrdict import AttrDict


class IntegrationConfig(AttrDict):
    """
    Integration specific configuration object.

    This is what you will get when you do::

        from cbtrace import config

        # This is an `IntegrationConfig`
        config.couchbase

        # `IntegrationConfig` supports both attribute and item accessors
        config.couchbase['service'] = 'my-couchbase'
        config.couchbase.service = 'my-couchbase'
    """

    def __init__(self, global_config, name, *args, **kwargs):
        """
        :param global_config:
        :type global_config: Config
        :param str name: the integration name
        """
        super(IntegrationConfig, self).__init__(*args, **kwargs)

        # DEV: By-pass the `__setattr__` of `AttrDict` to set real properties
        object.__setattr__(self, "global_config", global_config)
        object.__setattr__(self, "integration_name", name)

        service = os.getenv(
            "DD_%s_SERVICE" % name.upper(),
            default=os.getenv(
                "DD_%s_SERVICE_NAME" % name.upper(),
                default=None,
            ),
        )
        self.setdefault("service", service)
        self.setdefault("service_name", service)

    def __repr__(self):
        cls = self.__class__
        keys = ", ".join(self.keys())
        return "{}.{}({})".format(cls.__module__, cls.__name__, keys)

    def copy(self):
        new_instance = self.__class__(self.global_config, self.integration_name)
        new_instance.update(self)
        return new_instance
