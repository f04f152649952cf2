"""Rule-table driven plugin usable for any visa code."""

from typing import Any

from visa_engine.core.enums import ApplicationType
from visa_engine.services.rule_engine.base import EvaluationContext, EvaluationResult, VisaPlugin
from visa_engine.services.rule_engine.pipeline import GenericPreScreening


class GenericVisaPlugin(VisaPlugin):
    """Evaluates purely from the visa's RuleSet."""

    def __init__(self, rule_set):
        super().__init__(rule_set)
        self.pipeline = GenericPreScreening(rule_set)

    def evaluate(self, context: EvaluationContext) -> EvaluationResult:
        return self.pipeline.run(context)

    def get_requirements(self) -> dict[str, Any]:
        rule_set = self.rule_set
        requirements = rule_set.requirements
        return {
            "visaType": rule_set.code,
            "name": rule_set.name,
            "category": rule_set.category.value,
            "description": rule_set.description,
            "eligibility": {
                position: {
                    tier: cell.model_dump(mode="json") for tier, cell in tiers.items()
                }
                for position, tiers in rule_set.eligibility_matrix.entries.items()
            },
            "general": {
                "allowedNationalities": list(requirements.allowed_nationalities),
                "minimumAge": requirements.minimum_age,
                "maximumAge": requirements.maximum_age,
                "languages": [lang.model_dump(mode="json") for lang in requirements.languages],
            },
            "documents": {
                application_type.value: [
                    entry.model_dump(mode="json")
                    for entry in rule_set.documents.documents_for(application_type)
                ]
                for application_type in ApplicationType
            },
            "processingDays": {k.value: v for k, v in rule_set.base_processing_days.items()},
        }

    def get_special_features(self) -> dict[str, bool]:
        features = self.rule_set.features
        return {
            "hasAdvancedEvaluation": features.get("detailedEvaluation", False),
            "hasDocumentValidation": False,
            "hasCustomRequirements": False,
            "hasWorkflowIntegration": False,
        }
