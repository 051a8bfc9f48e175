"""Config loading, artifact storage and run manifests."""

from .config_loader import SEED_ENV_VAR, config_from_dict, load_config, load_yaml
from .manifest import RunManifest, build_manifest, hash_config_for_run_id, write_manifest
from .storage import atomic_write_csv, atomic_write_json, atomic_write_text, sha256_file

__all__ = [
    "SEED_ENV_VAR",
    "load_yaml",
    "config_from_dict",
    "load_config",
    "RunManifest",
    "build_manifest",
    "hash_config_for_run_id",
    "write_manifest",
    "atomic_write_text",
    "atomic_write_csv",
    "atomic_write_json",
    "sha256_file",
]
