from __future__ import annotations

import json
import logging
import os
import subprocess
from dataclasses import replace
from pathlib import Path
from typing import Any, List

from ..models import ClusterInstance, DatabaseInstance, DatabaseSchema
from ..normalization import SnapshotNormalizer, SnapshotShapeError, is_postgres

logger = logging.getLogger(__name__)


class InventoryError(RuntimeError):
    """Exception raised when resource discovery or snapshot loading fails."""


class InventoryLoader:
    """Discover Cloud SQL instances and GKE clusters through ``gcloud`` or JSON artifacts."""

    def __init__(
        self,
        *,
        gcloud_bin: str = "gcloud",
        instances_json_path: str | os.PathLike[str] | None = None,
        clusters_json_path: str | os.PathLike[str] | None = None,
        normalizer: SnapshotNormalizer | None = None,
        list_databases: bool = True,
    ) -> None:
        self.gcloud_bin = gcloud_bin
        self.instances_json_path = Path(instances_json_path).resolve() if instances_json_path else None
        self.clusters_json_path = Path(clusters_json_path).resolve() if clusters_json_path else None
        self.normalizer = normalizer or SnapshotNormalizer()
        self.list_databases = list_databases

    # ------------------------------------------------------------------
    def load_instances(self, project: str) -> List[DatabaseInstance]:
        """Return the PostgreSQL instances of ``project``."""

        if self.instances_json_path:
            payload = self._project_items(self._load_json_artifact(self.instances_json_path), project)
            instances = []
            for item in payload:
                if not is_postgres(item.get("databaseVersion")):
                    continue
                databases = self.normalizer.normalize_databases(
                    {"name": name} for name in item.get("databases") or []
                )
                instances.append(self.normalizer.normalize_instance(item, project, databases))
            return instances

        payload = self._gcloud(["sql", "instances", "list", f"--project={project}"])
        instances = self.normalizer.normalize_instances(payload, project)
        if not self.list_databases:
            return instances

        return [self._with_databases(instance) for instance in instances]

    def load_clusters(self, project: str) -> List[ClusterInstance]:
        """Return the GKE clusters of ``project``."""

        if self.clusters_json_path:
            payload = self._project_items(self._load_json_artifact(self.clusters_json_path), project)
        else:
            payload = self._gcloud(["container", "clusters", "list", f"--project={project}"])
        return self.normalizer.normalize_clusters(payload, project)

    def load_schema(self, path: str | os.PathLike[str]) -> DatabaseSchema:
        """Load a schema snapshot document produced by a database inspector."""

        payload = self._load_json_artifact(Path(path).resolve())
        if not isinstance(payload, dict):
            raise InventoryError(f"Schema snapshot must be a JSON object: {path}")
        try:
            return self.normalizer.normalize_schema(payload)
        except SnapshotShapeError as exc:
            raise InventoryError(f"Malformed schema snapshot {path}: {exc}") from exc

    # Artifact ingestion helpers -------------------------------------------------
    def _load_json_artifact(self, path: Path) -> Any:
        if not path.exists():
            raise InventoryError(f"JSON artifact not found: {path}")

        with path.open("r", encoding="utf-8") as handle:
            try:
                return json.load(handle)
            except json.JSONDecodeError as exc:
                raise InventoryError(f"Invalid JSON in artifact: {path}") from exc

    def _project_items(self, payload: Any, project: str) -> List[Any]:
        # Artifacts are either a flat list or a mapping of project id to list.
        if isinstance(payload, dict):
            payload = payload.get(project) or []
        if not isinstance(payload, list):
            raise InventoryError("Inventory artifact must contain a list of resources")
        return [item for item in payload if isinstance(item, dict) and item.get("project", project) == project]

    # gcloud execution -----------------------------------------------------------
    def _with_databases(self, instance: DatabaseInstance) -> DatabaseInstance:
        try:
            payload = self._gcloud(
                ["sql", "databases", "list", f"--instance={instance.name}", f"--project={instance.project}"]
            )
        except InventoryError as exc:
            logger.warning("Failed to list databases for %s: %s", instance.key, exc)
            return instance

        return replace(instance, databases=self.normalizer.normalize_databases(payload))

    def _gcloud(self, args: List[str]) -> Any:
        command = [self.gcloud_bin, *args, "--format=json"]
        logger.debug("Running %s", " ".join(command))
        completed = self._run_command(command, capture_output=True)
        return self._parse_command_output(completed.stdout)

    def _parse_command_output(self, output: str) -> Any:
        if not output or not output.strip():
            return []
        try:
            return json.loads(output)
        except json.JSONDecodeError as exc:
            raise InventoryError("Command output was not valid JSON") from exc

    # Command runner -------------------------------------------------------------
    def _run_command(
        self,
        args: List[str],
        *,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        try:
            completed = subprocess.run(
                args,
                check=True,
                capture_output=capture_output,
                text=True,
            )
        except FileNotFoundError as exc:
            raise InventoryError(f"Executable not found: {args[0]}") from exc
        except subprocess.CalledProcessError as exc:
            raise InventoryError(
                f"Command '{' '.join(args)}' failed with exit code {exc.returncode}"
            ) from exc

        return completed


__all__ = ["InventoryError", "InventoryLoader"]
