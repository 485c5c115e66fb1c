"""
Persona Loader
폴더 기반 페르소나 로딩 / Folder-based persona loading
"""
import yaml
import os
import logging
from dataclasses import dataclass, field
from typing import List, Dict

logger = logging.getLogger("agent")

PERSONAS_DIR = os.getenv("PERSONAS_DIR", "personas")


@dataclass
class PersonaConfig:
    id: str
    name: str
    bio: str = ""
    topics: List[str] = field(default_factory=list)
    post_directions: List[str] = field(default_factory=list)
    templates: Dict[str, str] = field(default_factory=dict)
    raw_data: Dict = field(default_factory=dict)

    @property
    def directions_text(self) -> str:
        if not self.post_directions:
            return ""
        return "- " + "\n- ".join(self.post_directions)


class PersonaLoader:

    @staticmethod
    def get_persona_dir(persona_name: str) -> str:
        """페르소나 폴더 경로"""
        return os.path.join(PERSONAS_DIR, persona_name)

    @staticmethod
    def _read_yaml(path: str) -> Dict:
        """YAML 파일 안전하게 읽기"""
        if os.path.exists(path):
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    return yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                logger.error(f"[PersonaLoader] Failed to read {path}: {e}")
        return {}

    @staticmethod
    def load_persona(persona_name: str) -> PersonaConfig:
        """특정 페르소나 로드"""
        persona_dir = PersonaLoader.get_persona_dir(persona_name)
        if not os.path.exists(persona_dir):
            raise FileNotFoundError(f"Persona directory not found: {persona_dir}")

        identity = PersonaLoader._read_yaml(os.path.join(persona_dir, "identity.yaml"))
        if not identity:
            raise ValueError(f"identity.yaml missing or empty in {persona_dir}")

        bio = identity.get('bio', '')
        if isinstance(bio, list):
            bio = " ".join(bio)

        style = identity.get('style', {})
        directions = list(style.get('all', [])) + list(style.get('post', []))

        return PersonaConfig(
            id=persona_name,
            name=identity.get('name', persona_name),
            bio=bio,
            topics=identity.get('topics', []),
            post_directions=directions,
            templates=identity.get('templates', {}),
            raw_data=identity
        )
