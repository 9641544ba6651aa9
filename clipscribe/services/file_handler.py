import os
import shutil
import logging
from pathlib import Path
from typing import Iterable, Optional
from ..errors import CleanupFailedError

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".mp3", ".m4a", ".wav")


class FileHandler:
    """Gerencia o diretório temporário (scratch) de cada job"""

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)

    def workspace_path(self, job_id: str) -> Path:
        return self.base_dir / f"transcribe_{job_id}"

    def create_workspace(self, job_id: str) -> Path:
        """Cria o diretório temporário do job e retorna o caminho"""
        workspace = self.workspace_path(job_id)
        workspace.mkdir(parents=True, exist_ok=True)
        return workspace

    def remove_workspace(self, workspace: Path) -> None:
        """Remove o diretório do job e tudo dentro dele.

        Raises:
            CleanupFailedError: se a remoção falhar
        """
        try:
            shutil.rmtree(workspace)
        except FileNotFoundError:
            return
        except OSError as e:
            raise CleanupFailedError(f"Falha ao remover {workspace}: {e}") from e

    def find_audio_file(self, workspace: Path, extensions: Iterable[str] = AUDIO_EXTENSIONS) -> Optional[Path]:
        """Procura qualquer arquivo de áudio aceito no diretório do job"""
        accepted = tuple(ext.lower() for ext in extensions)
        try:
            candidates = sorted(workspace.iterdir())
        except FileNotFoundError:
            return None

        for file_path in candidates:
            if file_path.is_file() and file_path.suffix.lower() in accepted:
                return file_path
        return None

    def get_file_info(self, file_path: Path) -> dict:
        """Obtém informações do arquivo"""
        if not os.path.exists(file_path):
            return {}

        stat = os.stat(file_path)
        return {
            "size": stat.st_size,
            "modified": stat.st_mtime
        }
