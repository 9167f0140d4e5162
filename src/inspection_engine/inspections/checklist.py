"""Static checklist catalog and in-memory checklist editing.

The catalog is a fixed set of categories, each with an ordered list of item
descriptions. An inspection's checklist starts as one blank item per catalog
pair (:func:`materialize`) and is edited in memory (:func:`update_item`)
until the caller persists it through the inspection service.
"""

from dataclasses import dataclass, asdict, replace
from typing import Any, Iterable, Optional

from inspection_engine.common.exceptions import ValidationError
from inspection_engine.inspections.models import ItemStatus, ProcessType

MAX_DESCRIPTION_LENGTH = 500
MAX_PROBLEM_LENGTH = 1000

CATEGORIES: dict[str, dict[str, Any]] = {
    "geral": {
        "name": "Geral",
        "items": (
            "Verificação visual do equipamento",
            "Verificar as condições do equipamento em geral",
            "Verificar anomalias na pintura (arranhões e manchas)",
            "Verificar se possui caixa de ferramenta",
            "Verificar aparelho de CD/Radio",
            "Verificar todas a proteções inferiores do chassi",
            "Verificar a calibração/danos dos pneus",
            "Verificar manuais (Manutenção e operação, catálogo de peças e certificado de garantia)",
            "Verificar adesivos",
            "Verificar giroflex",
            "Verificar chaves",
        ),
    },
    "motor": {
        "name": "Motor",
        "items": (
            "Nível de óleo",
            "Sistema de combustível com relação a vazamento",
            "Filtros de óleo (Combustível e lubrificante)",
            "Cabo de aceleração, estrangulador; se necessário, lubrifique e ajuste",
            "Fixação do motor, carcaça do filtro de ar, alternador, motor de arranque e ventilador",
            "Tensão das correias",
            "Nível do fluido de refrigeração; se necessário completar",
            "Sistema de arrefecimento, funcionamento",
            "Existência de qualquer tipo de vazamento",
        ),
    },
    "transmissao": {
        "name": "Transmissão",
        "items": (
            "Funcionamento geral",
            "Troca de marchas",
            "Vazamentos",
            "Temperatura de funcionamento",
            "Pressão e nível de óleo",
            "Filtro de óleo",
        ),
    },
    "eixos": {
        "name": "Eixos",
        "items": (
            "Lubrificação de pinos e buchas",
            "Eixos cardans",
            "Torque dos parafusos",
            "Vazamentos",
            "Nível de óleo",
        ),
    },
    "freios": {
        "name": "Freios",
        "items": (
            "Vazamentos",
            "Eficiência e funcionamento do sistema",
            "Sensores e interruptores",
            "Freio de estacionamento",
            "Oxidação dos discos e pinças",
            "Nível de óleo",
        ),
    },
    "hidraulico": {
        "name": "Sistema Hidráulico e Contrapeso",
        "items": (
            "Funcionamento",
            "Danos e oxidação nos braços",
            "Lubrificação",
            "Barulhos anormais",
            "Vazamentos",
            "Verificação dos contrapesos",
        ),
    },
    "deslocamento": {
        "name": "Deslocamento e Direção",
        "items": (
            "Funcionamento",
            "Barulhos anormais",
            "Vazamentos",
        ),
    },
    "chassi": {
        "name": "Chassi e Articulação",
        "items": (
            "Funcionamento",
            "Lubrificação dos cilindros de direção, pinos e buchas",
            "Folgas na articulação",
            "Vazamentos",
        ),
    },
    "eletrico": {
        "name": "Sistema Elétrico",
        "items": (
            "Funcionamento completo (bateria, iluminação, sensores)",
            "Montagem do chicote",
            "Fusíveis",
            "Alternador",
            "Motor de partida",
        ),
    },
    "cabine": {
        "name": "Cabine",
        "items": (
            "Montagem geral",
            "Controles (joystick, alavancas)",
            "Assento e ajustes",
            "Coluna de direção",
            "Painel de instrumentos",
            "Rádio (montagem e teste)",
        ),
    },
    "ar_condicionado": {
        "name": "Ar Condicionado",
        "items": (
            "Montagem e funcionamento",
            "Ventilador e difusores",
            "Painel de controle",
            "Vazamento de gás",
        ),
    },
}

EDITABLE_FIELDS = ("entry_status", "exit_status", "problem_description")
STATUS_FIELDS = ("entry_status", "exit_status")

_STATUS_VALUES = {s.value for s in ItemStatus}

ENTRY_PROCESSES = frozenset({ProcessType.ENTRADA_CBMAQ, ProcessType.ENTRADA_DNM})
EXIT_PROCESSES = frozenset({
    ProcessType.SAIDA_CBMAQ,
    ProcessType.SAIDA_DNM,
    ProcessType.ENTREGA_GOVERNO,
})


@dataclass(frozen=True)
class ChecklistItem:
    category: str
    item_description: str
    entry_status: Optional[str] = None
    exit_status: Optional[str] = None
    problem_description: Optional[str] = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.category, self.item_description)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def catalog_size() -> int:
    return sum(len(c["items"]) for c in CATEGORIES.values())


def is_catalog_item(category: str, item_description: str) -> bool:
    entry = CATEGORIES.get(category)
    return entry is not None and item_description in entry["items"]


def catalog_position(item: Any) -> int:
    """Index of an item in catalog order; unknown pairs sort last."""
    return _POSITIONS.get((item.category, item.item_description), len(_POSITIONS))


def materialize() -> list[ChecklistItem]:
    """One blank item per catalog (category, description), in catalog order."""
    return [
        ChecklistItem(category=key, item_description=description)
        for key, entry in CATEGORIES.items()
        for description in entry["items"]
    ]


_POSITIONS = {item.key: index for index, item in enumerate(materialize())}


def _check_status(field: str, value: Any) -> None:
    if value is not None and value not in _STATUS_VALUES:
        raise ValidationError(
            f"Invalid {field} '{value}'; expected one of A, B, C or empty"
        )


def update_item(
    items: list[ChecklistItem], index: int, field: str, value: Any
) -> list[ChecklistItem]:
    """Return a new list with ``items[index].field`` set to ``value``.

    Nothing is persisted; the caller saves the resulting list explicitly.
    """
    if field not in EDITABLE_FIELDS:
        raise ValidationError(f"Field '{field}' cannot be edited")
    if not 0 <= index < len(items):
        raise ValidationError(f"Item index {index} out of range")
    if field in STATUS_FIELDS:
        value = value or None
        _check_status(field, value)
    elif value is not None:
        value = str(value)
        if len(value.strip()) > MAX_PROBLEM_LENGTH:
            raise ValidationError("Problem description is too long")
    updated = list(items)
    updated[index] = replace(items[index], **{field: value})
    return updated


def normalize_item(item: ChecklistItem) -> ChecklistItem:
    """Trim text and turn empty strings into None."""
    problem = (item.problem_description or "").strip() or None
    return replace(
        item,
        category=item.category.strip(),
        item_description=item.item_description.strip(),
        entry_status=item.entry_status or None,
        exit_status=item.exit_status or None,
        problem_description=problem,
    )


def validate_items(items: Iterable[ChecklistItem]) -> list[ChecklistItem]:
    """Normalize and validate a submitted checklist.

    Raises ValidationError for items outside the catalog, duplicate
    (category, description) pairs, unknown status values or oversized text.
    """
    seen: set[tuple[str, str]] = set()
    result = []
    for raw in items:
        item = normalize_item(raw)
        if len(item.item_description) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError("Item description is too long")
        if not is_catalog_item(item.category, item.item_description):
            raise ValidationError(
                f"Unknown checklist item: {item.category} / {item.item_description}"
            )
        if item.key in seen:
            raise ValidationError(
                f"Duplicate checklist item: {item.category} / {item.item_description}"
            )
        seen.add(item.key)
        for field in STATUS_FIELDS:
            _check_status(field, getattr(item, field))
        if item.problem_description and len(item.problem_description) > MAX_PROBLEM_LENGTH:
            raise ValidationError("Problem description is too long")
        result.append(item)
    return result


def items_needing_description(items: Iterable[Any]) -> list[Any]:
    """Items marked B (needs repair) on either column without a problem description."""
    flagged = []
    for item in items:
        needs_repair = ItemStatus.NEEDS_REPAIR.value in (item.entry_status, item.exit_status)
        if needs_repair and not (item.problem_description or "").strip():
            flagged.append(item)
    return flagged


def visible_columns(process_type: str) -> tuple[str, ...]:
    """Status columns shown for a process type."""
    try:
        ptype = ProcessType(process_type)
    except ValueError:
        raise ValidationError(f"Unknown process type '{process_type}'")
    if ptype in ENTRY_PROCESSES:
        return ("entry_status",)
    if ptype in EXIT_PROCESSES:
        return ("exit_status",)
    return STATUS_FIELDS
