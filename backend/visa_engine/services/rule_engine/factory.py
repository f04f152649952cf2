"""Factory resolving visa codes to plugin instances."""

import logging
import re
from typing import Any, Callable, Optional

from visa_engine.core.errors import ConfigurationError
from visa_engine.rules import RULE_SETS, get_rule_set
from visa_engine.services.rule_engine.adapter import EvaluationAdapter
from visa_engine.services.rule_engine.base import VisaPlugin
from visa_engine.services.rule_engine.plugins import E1Plugin, GenericVisaPlugin

logger = logging.getLogger(__name__)

PluginConstructor = Callable[[], VisaPlugin]


def normalize_visa_code(code: str) -> str:
    """
    Normalize a visa code: uppercase, non-alphanumerics to ``-``.

    ``e1``, ``E_1`` and ``e-1`` all normalize to ``E-1``.
    """
    normalized = re.sub(r"[^A-Z0-9]+", "-", str(code).strip().upper()).strip("-")
    match = re.fullmatch(r"([A-Z])(\d+)", normalized)
    if match:
        normalized = f"{match.group(1)}-{match.group(2)}"
    return normalized


class EvaluatorFactory:
    """
    Compile-time registry of visa codes to plugin constructors.

    Instances are cached per code; plugins are stateless so one instance
    serves every evaluation.
    """

    def __init__(self):
        self._registry: dict[str, PluginConstructor] = {}
        self._instances: dict[str, VisaPlugin] = {}
        self._stats = {"totalCreated": 0, "cacheHits": 0, "specialized": 0, "fallbacks": 0}
        self._register_default_plugins()

    def _register_default_plugins(self):
        """Register plugins for every shipped rule set."""
        # E-1 merges the rule-table and hand-written evaluations
        self._registry["E-1"] = lambda: EvaluationAdapter(
            GenericVisaPlugin(get_rule_set("E-1")), E1Plugin(get_rule_set("E-1"))
        )

        # Categories without a specialized evaluator use the rule table alone
        for code in RULE_SETS:
            self._registry.setdefault(code, lambda code=code: GenericVisaPlugin(get_rule_set(code)))

    def register(self, code: str, constructor: PluginConstructor) -> None:
        """
        Register or replace the constructor for a visa code.

        Args:
            code: Visa code
            constructor: Zero-argument callable returning a plugin
        """
        normalized = normalize_visa_code(code)
        self._registry[normalized] = constructor
        self._instances.pop(normalized, None)

    def is_supported(self, code: str) -> bool:
        return normalize_visa_code(code) in self._registry

    def supported_visa_types(self) -> list[str]:
        return sorted(self._registry)

    def create(self, code: str) -> VisaPlugin:
        """
        Resolve a visa code to a plugin.

        Args:
            code: Visa code in any common spelling

        Returns:
            Cached or newly created plugin instance

        Raises:
            ConfigurationError: If the code is not registered
        """
        normalized = normalize_visa_code(code)

        cached = self._instances.get(normalized)
        if cached is not None:
            self._stats["cacheHits"] += 1
            return cached

        constructor = self._registry.get(normalized)
        if constructor is None:
            raise ConfigurationError(
                f"Unsupported visa type: {code}",
                details={"visaType": code, "supported": self.supported_visa_types()},
            )

        plugin = constructor()
        self._instances[normalized] = plugin
        self._stats["totalCreated"] += 1
        if plugin.is_specialized:
            self._stats["specialized"] += 1
        else:
            self._stats["fallbacks"] += 1
        logger.info(f"Created {type(plugin).__name__} for {normalized}")
        return plugin

    def create_batch(self, codes: list[str]) -> dict[str, Any]:
        """
        Resolve several codes, collecting failures instead of raising.

        Returns:
            Dict with ``plugins`` (code -> plugin) and ``errors`` (code -> message)
        """
        plugins: dict[str, VisaPlugin] = {}
        errors: dict[str, str] = {}
        for code in codes:
            try:
                plugins[normalize_visa_code(code)] = self.create(code)
            except ConfigurationError as e:
                errors[code] = e.message
        return {"plugins": plugins, "errors": errors}

    def capabilities(self, code: str) -> dict[str, Any]:
        """Describe what the engine can do for a visa code."""
        normalized = normalize_visa_code(code)
        if normalized not in self._registry:
            return {
                "isSupported": False,
                "hasSpecializedEvaluator": False,
                "complexity": None,
                "category": None,
            }
        plugin = self.create(normalized)
        return {
            "isSupported": True,
            "hasSpecializedEvaluator": plugin.is_specialized,
            "complexity": plugin.rule_set.complexity.value,
            "category": plugin.rule_set.category.value,
            "features": plugin.get_special_features(),
        }

    def clear_cache(self, code: Optional[str] = None) -> int:
        """Drop cached instances; returns how many were dropped."""
        if code is not None:
            return 1 if self._instances.pop(normalize_visa_code(code), None) else 0
        count = len(self._instances)
        self._instances.clear()
        return count

    def get_cache_stats(self) -> dict[str, Any]:
        return {
            **self._stats,
            "cachedInstances": len(self._instances),
            "cachedTypes": sorted(self._instances),
        }

    def health_check(self) -> dict[str, Any]:
        """Run every registered plugin's health check."""
        plugins = {}
        for code in self.supported_visa_types():
            try:
                plugins[code] = self.create(code).health_check()
            except Exception as e:
                logger.error(f"Health check failed for {code}: {str(e)}", exc_info=True)
                plugins[code] = {"status": "UNHEALTHY", "visaType": code, "error": str(e)}
        healthy = all(p.get("status") == "HEALTHY" for p in plugins.values())
        return {
            "status": "HEALTHY" if healthy else "DEGRADED",
            "plugins": plugins,
            "stats": self.get_cache_stats(),
        }
