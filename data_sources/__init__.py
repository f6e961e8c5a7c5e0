from .base import DataSource, DataSourceError
from .factory import get_data_source
