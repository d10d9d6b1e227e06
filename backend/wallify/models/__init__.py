from wallify.models.asset import Asset, AssetKind
from wallify.models.schedule_rule import ScheduleRule, PredicateKind
from wallify.models.content_version import ContentVersion

__all__ = [
    "Asset", "AssetKind",
    "ScheduleRule", "PredicateKind",
    "ContentVersion",
]
