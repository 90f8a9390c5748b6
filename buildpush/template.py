"""
Template loading.

Reads the parts of a JSON build template the push needs: builders,
post-processors and the ``push`` section.
"""
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import TemplateValidationError
from .models import BuilderSpec, PostProcessorSpec, PushSpec


@dataclass(frozen=True)
class PushSection:
    """The template's ``push`` section."""
    name: str = ""
    address: Optional[str] = None
    token: Optional[str] = None
    base_dir: str = ""
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()
    vcs: bool = False


@dataclass(frozen=True)
class Template:
    """Parsed template."""
    path: Path
    push: PushSection
    builders: Tuple[BuilderSpec, ...] = ()
    post_processors: Tuple[PostProcessorSpec, ...] = ()

    def to_push_spec(
        self,
        token: Optional[str] = None,
        message: Optional[str] = None,
    ) -> PushSpec:
        """Combine the push section with command-line overrides."""
        if not self.push.name:
            raise TemplateValidationError(
                "the 'push' section must be specified in the template "
                "with at least the 'name' option set"
            )
        return PushSpec(
            template_path=self.path,
            slug=self.push.name,
            token=token or self.push.token,
            message=message,
            base_dir=self.push.base_dir,
            include=self.push.include,
            exclude=self.push.exclude,
            vcs=self.push.vcs,
            address=self.push.address,
        )


def _string_list(value: Any, field_name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise TemplateValidationError(f"'{field_name}' must be a list of strings")
    return tuple(value)


def _bool(value: Any, field_name: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise TemplateValidationError(f"'{field_name}' must be true or false")
    return value


def _parse_push(raw: Any) -> PushSection:
    if raw is None:
        return PushSection()
    if not isinstance(raw, dict):
        raise TemplateValidationError("'push' must be an object")
    return PushSection(
        name=str(raw.get("name") or ""),
        address=raw.get("address") or None,
        token=raw.get("token") or None,
        base_dir=str(raw.get("base_dir") or ""),
        include=_string_list(raw.get("include"), "push.include"),
        exclude=_string_list(raw.get("exclude"), "push.exclude"),
        vcs=_bool(raw.get("vcs"), "push.vcs"),
    )


def _parse_builders(raw: Any) -> Tuple[BuilderSpec, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise TemplateValidationError("'builders' must be a list")

    builders: List[BuilderSpec] = []
    seen = set()
    for index, item in enumerate(raw):
        if not isinstance(item, dict) or not item.get("type"):
            raise TemplateValidationError(f"builder {index + 1}: missing 'type'")
        name = item.get("name") or item["type"]
        if name in seen:
            raise TemplateValidationError(f"builder {index + 1}: duplicate name {name!r}")
        seen.add(name)
        builders.append(BuilderSpec(name=name, type=item["type"]))
    return tuple(builders)


def _parse_post_processor(raw: Union[str, Dict[str, Any]]) -> PostProcessorSpec:
    if isinstance(raw, str):
        return PostProcessorSpec(type=raw)
    if isinstance(raw, dict) and raw.get("type"):
        return PostProcessorSpec(
            type=raw["type"],
            only=_string_list(raw.get("only"), "only"),
            except_=_string_list(raw.get("except"), "except"),
        )
    raise TemplateValidationError(f"invalid post-processor definition: {raw!r}")


def _parse_post_processors(raw: Any) -> Tuple[PostProcessorSpec, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise TemplateValidationError("'post-processors' must be a list")

    # Each entry is a single post-processor or a chain of them.
    result: List[PostProcessorSpec] = []
    for entry in raw:
        chain = entry if isinstance(entry, list) else [entry]
        result.extend(_parse_post_processor(item) for item in chain)
    return tuple(result)


def load_template(path: Union[str, Path]) -> Template:
    """Read and parse a template file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise TemplateValidationError(f"failed to read template {path}: {exc}") from exc
    except ValueError as exc:
        raise TemplateValidationError(f"failed to parse template {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise TemplateValidationError(f"failed to parse template {path}: expected an object")

    return Template(
        path=path,
        push=_parse_push(data.get("push")),
        builders=_parse_builders(data.get("builders")),
        post_processors=_parse_post_processors(data.get("post-processors")),
    )
