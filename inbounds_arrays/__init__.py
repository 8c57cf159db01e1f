"""Arrays whose element access skips bounds checking, with type-preserving forwarding."""

from importlib.metadata import PackageNotFoundError, version

from .core import (
    ArrayContract,
    InboundsArray,
    get_noninbounds,
    is_storage,
    is_wrapped,
    unwrap,
    unwrap_all,
    wrap,
)
from .dispatch import REGISTRY, ForwardingRule, RuleRegistry, forward, rule, unregister
from .errors import AmbiguousRuleError, InboundsArraysError, NoMatchingRuleError, PreferencesError
from .settings import (
    CapabilityMode,
    get_capability_mode,
    set_capability_mode,
    structural_interface_enabled,
)
from .catalog import register_defaults
from .catalog.dense import reverse_inplace, selectdim
from .catalog.fft import FFTPlan, plan_fft, plan_fft_inplace, plan_ifft, plan_r2r, plan_r2r_inplace
from .catalog.linalg import (
    Factorization,
    LUFactorization,
    SparseLUFactorization,
    adjoint,
    inv,
    ldiv,
    lu,
    mul,
    solve,
    transpose,
)
from .catalog.sparse import SparseStorage, sparse, to_csr
from .constructors import (
    arange,
    array,
    asarray,
    empty,
    empty_like,
    eye,
    full,
    full_like,
    ones,
    ones_like,
    similar,
    zeros,
    zeros_like,
)

try:  # pragma: no cover - metadata is provided at build time
    __version__ = version("inbounds-arrays")
except PackageNotFoundError:  # pragma: no cover - fallback during development
    __version__ = "0.0.0.dev0"

register_defaults(REGISTRY)


__all__ = [
    "AmbiguousRuleError",
    "ArrayContract",
    "CapabilityMode",
    "FFTPlan",
    "Factorization",
    "ForwardingRule",
    "InboundsArray",
    "InboundsArraysError",
    "LUFactorization",
    "NoMatchingRuleError",
    "PreferencesError",
    "REGISTRY",
    "RuleRegistry",
    "SparseLUFactorization",
    "SparseStorage",
    "__version__",
    "adjoint",
    "arange",
    "array",
    "asarray",
    "empty",
    "empty_like",
    "eye",
    "forward",
    "full",
    "full_like",
    "get_capability_mode",
    "get_noninbounds",
    "inv",
    "is_storage",
    "is_wrapped",
    "ldiv",
    "lu",
    "mul",
    "ones",
    "ones_like",
    "plan_fft",
    "plan_fft_inplace",
    "plan_ifft",
    "plan_r2r",
    "plan_r2r_inplace",
    "register_defaults",
    "reverse_inplace",
    "rule",
    "selectdim",
    "set_capability_mode",
    "similar",
    "solve",
    "sparse",
    "structural_interface_enabled",
    "to_csr",
    "transpose",
    "unregister",
    "unwrap",
    "unwrap_all",
    "wrap",
    "zeros",
    "zeros_like",
]
