"""
Checklist definitions — the static environmental-compliance catalog.

Categories → subcategories → items. Item ids are stable join keys between
the catalog and every stored InspectionItemResult; never renumber or reuse
an id, or historical reports stop lining up with the catalog.

Ordering matters for display numbering only, never for scoring.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChecklistItem:
    id: str
    text: str


@dataclass(frozen=True)
class ChecklistSubCategory:
    title: str
    items: tuple[ChecklistItem, ...]


@dataclass(frozen=True)
class ChecklistCategory:
    id: str
    title: str
    sub_categories: tuple[ChecklistSubCategory, ...]

    @property
    def items(self) -> tuple[ChecklistItem, ...]:
        return tuple(item for sub in self.sub_categories for item in sub.items)


def _sub(title: str, *items: tuple[str, str]) -> ChecklistSubCategory:
    return ChecklistSubCategory(
        title=title,
        items=tuple(ChecklistItem(id=item_id, text=text) for item_id, text in items),
    )


CHECKLIST_DEFINITIONS: tuple[ChecklistCategory, ...] = (
    ChecklistCategory(
        id="massa",
        title="Gestão de Resíduos Sólidos",
        sub_categories=(
            _sub(
                "Segregação e Acondicionamento",
                ("massa-1", "Resíduos segregados por classe (CONAMA 307) em baias identificadas"),
                ("massa-2", "Baias cobertas, com piso impermeável e sinalização legível"),
                ("massa-3", "Ausência de resíduos dispersos nas frentes de serviço"),
            ),
            _sub(
                "Destinação",
                ("massa-4", "Manifestos de transporte de resíduos (MTR) emitidos e arquivados"),
                ("massa-5", "Transportador e destinatário licenciados para a classe do resíduo"),
                ("massa-6", "Resíduos perigosos (Classe D) armazenados em local exclusivo"),
            ),
        ),
    ),
    ChecklistCategory(
        id="efluentes",
        title="Efluentes e Drenagem",
        sub_categories=(
            _sub(
                "Efluentes Sanitários",
                ("efluentes-1", "Banheiros químicos ou rede ligada ao sistema de tratamento"),
                ("efluentes-2", "Comprovantes de limpeza e destinação dos banheiros químicos"),
            ),
            _sub(
                "Águas Pluviais e Lavagem",
                ("efluentes-3", "Caixa de decantação na lavagem de betoneiras e ferramentas"),
                ("efluentes-4", "Drenagem provisória sem carreamento de sedimentos para vias"),
                ("efluentes-5", "Lava-rodas operante na saída de veículos"),
            ),
        ),
    ),
    ChecklistCategory(
        id="campo",
        title="Controles de Campo",
        sub_categories=(
            _sub(
                "Emissões e Ruído",
                ("campo-1", "Umectação de vias e áreas expostas para controle de poeira"),
                ("campo-2", "Caminhões com carga coberta por lona"),
                ("campo-3", "Atividades ruidosas restritas ao horário permitido"),
            ),
            _sub(
                "Vegetação e Solo",
                ("campo-4", "Áreas de preservação e árvores protegidas isoladas e sinalizadas"),
                ("campo-5", "Taludes e solo exposto com proteção contra erosão"),
            ),
        ),
    ),
    ChecklistCategory(
        id="quimicos",
        title="Produtos Químicos",
        sub_categories=(
            _sub(
                "Armazenamento",
                ("quimicos-1", "Produtos armazenados sobre bacia de contenção"),
                ("quimicos-2", "Fichas de segurança (FISPQ/FDS) disponíveis no local"),
                ("quimicos-3", "Embalagens identificadas e fechadas"),
            ),
            _sub(
                "Emergência",
                ("quimicos-4", "Kit de mitigação de derramamento disponível e completo"),
            ),
        ),
    ),
    ChecklistCategory(
        id="combustivel",
        title="Combustíveis e Equipamentos",
        sub_categories=(
            _sub(
                "Abastecimento",
                ("combustivel-1", "Abastecimento realizado sobre área impermeabilizada ou bandeja"),
                ("combustivel-2", "Tanques e tambores com bacia de contenção (110% do volume)"),
            ),
            _sub(
                "Manutenção",
                ("combustivel-3", "Equipamentos sem vazamento de óleo ou graxa"),
                ("combustivel-4", "Solo contaminado removido e destinado como resíduo perigoso"),
            ),
        ),
    ),
)
