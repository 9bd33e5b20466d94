from snaplink.models.mapping_model import MappingModel
from snaplink.models.rate_limit_model import AdmissionModel, BandwidthLimit, BucketProbeModel


__all__ = [
    'MappingModel',
    'AdmissionModel',
    'BandwidthLimit',
    'BucketProbeModel',
]
