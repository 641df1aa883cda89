from .base import Base
from .dbo_segment import SegmentRecord
from .dbo_subscriber import Subscriber, SubscriberStatusEnum
from .pg_segment import Segment, SegmentInput
