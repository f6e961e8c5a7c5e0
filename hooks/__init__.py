from .base import BaseFilter, Stage
from .manager import FilterChain, load_filters
