"""Decay settings for input ingestion.

Two knobs control how older (historical) interaction data is blended with the
current inbound batch:

    model.decay.factor         multiplier in [0, 1] applied to every
                               historical weight.  0 ignores history.
    model.decay.zeroThreshold  cells whose absolute weight ends up below this
                               value are pruned after ingestion.  0 disables.

Usage:
    from als_inputs.decay_config import DecayConfig
    config = DecayConfig.from_file('conf/ingest.json')
    config = DecayConfig(decay_factor=0.5, zero_threshold=0.01)
"""

import json
import math
import os

FACTOR_KEY = 'model.decay.factor'
ZERO_THRESHOLD_KEY = 'model.decay.zeroThreshold'

# Defaults keep every historical weight and prune nothing.
DEFAULT_DECAY_CONFIG = {
    FACTOR_KEY: 1.0,
    ZERO_THRESHOLD_KEY: 0.0,
}


def _as_float(value, key):
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be a number: {value!r}") from None


def _lookup(settings, dotted_key):
    """Find a dotted key either flat or as nested dicts."""
    if dotted_key in settings:
        return settings[dotted_key]
    node = settings
    for part in dotted_key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return DEFAULT_DECAY_CONFIG[dotted_key]
        node = node[part]
    return node


class DecayConfig:
    """Validated decay settings.  Invalid values raise ValueError immediately."""

    def __init__(self, decay_factor=DEFAULT_DECAY_CONFIG[FACTOR_KEY],
                 zero_threshold=DEFAULT_DECAY_CONFIG[ZERO_THRESHOLD_KEY]):
        decay_factor = _as_float(decay_factor, FACTOR_KEY)
        zero_threshold = _as_float(zero_threshold, ZERO_THRESHOLD_KEY)

        # NaN fails both comparisons, so it is rejected here as well
        if not (0.0 <= zero_threshold) or math.isinf(zero_threshold):
            raise ValueError(f"Zero threshold must be nonnegative: {zero_threshold}")
        if not (0.0 <= decay_factor <= 1.0):
            raise ValueError(f"Decay factor must be in [0,1]: {decay_factor}")

        self.decay_factor = decay_factor
        self.zero_threshold = zero_threshold

    @classmethod
    def from_dict(cls, settings):
        """Build a config from a (possibly nested) settings dict.

        Args:
            settings: Either {'model': {'decay': {'factor': ..., 'zeroThreshold': ...}}}
                      or flat dotted keys such as {'model.decay.factor': 0.5}.
                      Missing keys fall back to DEFAULT_DECAY_CONFIG.

        Returns:
            DecayConfig
        """
        return cls(
            decay_factor=_lookup(settings, FACTOR_KEY),
            zero_threshold=_lookup(settings, ZERO_THRESHOLD_KEY),
        )

    @classmethod
    def from_file(cls, path):
        """Load settings from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file holds invalid values.
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"No config file found at {path}.")
        with open(path, 'r') as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            raise ValueError(f"Config file {path} must contain a JSON object.")
        return cls.from_dict(settings)

    def with_overrides(self, decay_factor=None, zero_threshold=None):
        """Return a new config with any non-None values replaced."""
        return DecayConfig(
            decay_factor=self.decay_factor if decay_factor is None else decay_factor,
            zero_threshold=self.zero_threshold if zero_threshold is None else zero_threshold,
        )

    def __eq__(self, other):
        if not isinstance(other, DecayConfig):
            return NotImplemented
        return (self.decay_factor == other.decay_factor
                and self.zero_threshold == other.zero_threshold)

    def __repr__(self):
        return (f"DecayConfig(decay_factor={self.decay_factor}, "
                f"zero_threshold={self.zero_threshold})")
