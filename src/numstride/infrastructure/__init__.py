from ._config import EngineConfig, config_context, get_config, set_config
from ._parallel import KernelExecutor

__all__ = [
    EngineConfig.__name__,
    config_context.__name__,
    get_config.__name__,
    set_config.__name__,
    KernelExecutor.__name__,
]
