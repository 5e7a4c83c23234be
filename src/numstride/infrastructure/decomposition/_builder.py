"""
Control-path manager for decomposition variants.

Decompositions expose a `variant` attribute (the Cholesky side, the LU
method). Variant-specific implementations of `_factorize` and related steps
register themselves with this manager:

    @decomposition_control_path(LUDecomposition, LUDecomposition._factorize, LUMethod.CROUT)
    def _factorize_crout(self): ...

and calling ``decomposition._factorize()`` dispatches on ``self.variant``.
"""

from ...domain.utils import create_path_builder

decomposition_control_path = create_path_builder("variant")
