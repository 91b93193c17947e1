# svar/utils/misc.py
"""
Miscellaneous helpers: array/DataFrame coercion and random generator setup.
"""

import logging
from typing import Any, Optional

import numpy as np
import pandas as pd

from svar.core.config import get_core_config
from svar.core.exceptions import raise_parameter_error
from svar.core.types import RandomState

logger = logging.getLogger("svar.utils.misc")


def ensure_array(data: Any, dtype: Optional[np.dtype] = None) -> np.ndarray:
    """
    Ensure input is a NumPy array.

    Examples:
        >>> from svar.utils.misc import ensure_array
        >>> import pandas as pd
        >>> ensure_array(pd.Series([1, 2, 3]))
        array([1, 2, 3])
    """
    if isinstance(data, np.ndarray) and (dtype is None or data.dtype == dtype):
        return data

    if isinstance(data, (pd.Series, pd.DataFrame)):
        return data.values if dtype is None else data.values.astype(dtype)

    return np.array(data) if dtype is None else np.array(data, dtype=dtype)


def ensure_dataframe(data: Any, columns: Optional[Any] = None) -> pd.DataFrame:
    """
    Ensure input is a Pandas DataFrame, with an optional column relabelling.

    1-D input becomes a single-column frame.
    """
    if isinstance(data, pd.DataFrame):
        df = data.copy()
        if columns is not None:
            df.columns = columns
        return df

    if isinstance(data, pd.Series):
        df = data.to_frame()
        if columns is not None:
            df.columns = columns
        return df

    array = np.asarray(data, dtype=np.float64)
    if array.ndim == 1:
        array = array[:, None]
    return pd.DataFrame(array, columns=columns)


def as_generator(random_state: RandomState = None) -> np.random.Generator:
    """
    Turn a seed or generator into a ``numpy.random.Generator``.

    ``None`` falls back to ``core.random_seed`` from the configuration (which
    itself may be ``None`` for fresh OS entropy).

    Raises:
        ParameterError: If ``random_state`` is neither None, an int nor a Generator
    """
    if isinstance(random_state, np.random.Generator):
        return random_state

    if random_state is None:
        seed = get_core_config().random_seed
        return np.random.default_rng(seed)

    if isinstance(random_state, (int, np.integer)) and not isinstance(random_state, bool):
        return np.random.default_rng(int(random_state))

    raise_parameter_error(
        "random_state must be None, an integer seed or a numpy Generator",
        param_name="random_state",
        param_value=type(random_state).__name__,
        constraint="None | int | numpy.random.Generator"
    )
