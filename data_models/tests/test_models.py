import os
import sys
import unittest
import uuid

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..")))

from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import class_mapper
from sqlalchemy.schema import CreateTable

from data_models.base import Base
from data_models.dbo_segment import SegmentRecord
from data_models.dbo_subscriber import Subscriber
from data_models.pg_segment import Segment, SegmentInput

# No database needed: these only compile DDL for the Postgres dialect
# and exercise the pydantic models.

class TestSchemaDefinitions(unittest.TestCase):
    def test_mappers_configure(self):
        """
        Verifies that the declarative mappings are valid.
        """
        try:
            class_mapper(SegmentRecord)
            class_mapper(Subscriber)
        except Exception as e:
            self.fail(f"Mapping configuration failed: {e}")

    def test_tables_registered(self):
        self.assertIn("segments", Base.metadata.tables)
        self.assertIn("subscribers", Base.metadata.tables)

    def test_segments_ddl(self):
        ddl = str(CreateTable(SegmentRecord.__table__).compile(dialect=postgresql.dialect()))
        self.assertIn("uuid UUID NOT NULL", ddl)
        self.assertIn("segment_query TEXT", ddl)
        self.assertIn("created_at TIMESTAMP WITH TIME ZONE", ddl)

    def test_subscribers_ddl(self):
        ddl = str(CreateTable(Subscriber.__table__).compile(dialect=postgresql.dialect()))
        self.assertIn("attribs JSONB", ddl)


class TestSegmentModels(unittest.TestCase):
    def test_input_strips_text(self):
        data = SegmentInput(name="  VIP ", segment_query=" subscribers.id > 0 ", description=None)
        self.assertEqual(data.name, "VIP")
        self.assertEqual(data.segment_query, "subscribers.id > 0")

    def test_input_defaults(self):
        data = SegmentInput(name=None, segment_query=None)
        self.assertEqual(data.name, "")
        self.assertEqual(data.segment_query, "")
        self.assertIsNone(data.description)

    def test_total_is_not_serialized(self):
        seg = Segment.from_row({
            "total": 4,
            "id": 1,
            "uuid": uuid.uuid4(),
            "name": "High value",
            "segment_query": "subscribers.id > 0",
            "description": None,
            "created_at": None,
            "updated_at": None,
        })
        self.assertEqual(seg.total, 4)
        self.assertNotIn("total", seg.model_dump())


if __name__ == '__main__':
    unittest.main()
