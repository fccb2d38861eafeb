import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field

from .config import ColumnEncoding, Datatype, Schemas, U256Type, freeze_schemas
from .log_decoder import LogDecoder
from .rpc import RpcFetcher
from .schemas import make_table

logger = logging.getLogger(__name__)


class RpcConfig(BaseModel):
    """Node endpoint configuration"""

    url: str
    timeout: float = 30.0
    max_concurrent_requests: int = 16


class DatatypeConfig(BaseModel):
    """Column selection and encodings for one datatype"""

    columns: Optional[List[str]] = None
    include_columns: List[str] = Field(default_factory=list)
    exclude_columns: List[str] = Field(default_factory=list)
    hex: bool = False
    column_encodings: Dict[str, ColumnEncoding] = Field(default_factory=dict)
    u256_types: Dict[str, U256Type] = Field(default_factory=dict)
    default_u256_type: U256Type = U256Type.BINARY
    sort: Optional[List[str]] = None
    event_signature: Optional[str] = None


class FreezeConfig(BaseModel):
    """Main configuration"""

    rpc: RpcConfig
    chain_id: Optional[int] = None
    max_concurrent_chunks: int = 4
    retries: int = 0
    datatypes: Dict[Datatype, DatatypeConfig]


def parse_config(config_path: Union[str, Path]) -> FreezeConfig:
    """Parse configuration from YAML file, expanding environment variables"""
    logger.info(f"Parsing configuration from {config_path}")
    try:
        with open(config_path, "r") as f:
            raw_config = yaml.safe_load(os.path.expandvars(f.read()))
            logger.debug(f"Raw YAML data:\n{json.dumps(raw_config, indent=2)}")

        config = FreezeConfig.model_validate(raw_config)

        logger.info(f"Found {len(config.datatypes)} datatypes")
        logger.debug(f"Parsed configuration: {config.model_dump_json(indent=2)}")

        return config
    except Exception as e:
        logger.error(f"Error parsing config file {config_path}: {e}")
        raise


def build_schemas(config: FreezeConfig) -> Schemas:
    tables = {}
    for datatype, dt_config in config.datatypes.items():
        log_decoder = None
        if dt_config.event_signature is not None:
            log_decoder = LogDecoder(dt_config.event_signature)

        tables[datatype] = make_table(
            datatype,
            columns=dt_config.columns,
            include_columns=dt_config.include_columns,
            exclude_columns=dt_config.exclude_columns,
            binary_encoding=ColumnEncoding.HEX if dt_config.hex else ColumnEncoding.BINARY,
            column_encodings=dt_config.column_encodings,
            u256_types=dt_config.u256_types,
            default_u256_type=dt_config.default_u256_type,
            sort_columns=dt_config.sort,
            chain_id=config.chain_id,
            log_decoder=log_decoder,
        )

    return freeze_schemas(tables)


def create_fetcher(config: FreezeConfig) -> RpcFetcher:
    return RpcFetcher(
        config.rpc.url,
        timeout=config.rpc.timeout,
        max_concurrent_requests=config.rpc.max_concurrent_requests,
    )


__all__ = [
    "RpcConfig",
    "DatatypeConfig",
    "FreezeConfig",
    "parse_config",
    "build_schemas",
    "create_fetcher",
]
