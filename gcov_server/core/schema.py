from sqlalchemy import Column
from sqlalchemy import DateTime
from sqlalchemy import Identity
from sqlalchemy import Integer
from sqlalchemy import JSON
from sqlalchemy import MetaData
from sqlalchemy import Table
from sqlalchemy import Text
from sqlalchemy.dialects.postgresql import JSONB

metadata = MetaData()

# jsonb on Postgres; plain JSON text elsewhere (SQLite in tests)
CoverageBlob = JSONB().with_variant(JSON(), 'sqlite')

SUMMARY_TABLE = Table(
    'summary',
    metadata,
    Column('insert_time', DateTime(timezone=True), comment='Row Insertion Time'),
    Column('org', Text, comment='Organisation the repo belongs to'),
    Column('repo', Text, comment='Repository Name'),
    Column('coverage', CoverageBlob, comment='Flattened coverage summary'),
)

REPORTS_TABLE = Table(
    'reports',
    metadata,
    Column('report_id', Integer, Identity(), primary_key=True),
    Column('insert_time', DateTime(timezone=True), comment='Row Insertion Time'),
    Column('org', Text, comment='Organisation the repo belongs to'),
    Column('repo', Text, comment='Repository Name'),
    Column('branch', Text, comment='Branch the report was built from'),
    Column('commit', Text, comment='Commit the report was built from'),
)
