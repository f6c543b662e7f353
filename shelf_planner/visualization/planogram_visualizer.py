import matplotlib.pyplot as plt
import matplotlib.patches as patches
from matplotlib.patches import Rectangle, FancyBboxPatch
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import seaborn as sns

from shelf_planner.layout.block_allocator import block_spans
from shelf_planner.layout.interval_mapper import fixture_ranges, map_blocks_to_fixtures
from shelf_planner.layout.packing import RowUsage, row_usage
from shelf_planner.models.fixture import FixtureSlot
from shelf_planner.models.planogram import Block, Placement, StandardPlanogram, StorePlanogram
from shelf_planner.models.product import ProductCatalog
from shelf_planner.utils.constants import DEFAULT_CANVAS_HEIGHT
from shelf_planner.utils.logger import get_logger


class PlanogramVisualizer:
    """Draw standard and store layouts with matplotlib"""

    def __init__(self, figsize: Tuple[int, int] = (16, 9)):
        self.figsize = figsize
        self.logger = get_logger()
        self.shelf_color = '#F0F0F0'
        self.unknown_color = '#B0B0B0'

    def _category_colors(self, placements: Sequence[Placement], catalog: ProductCatalog) -> Dict[str, str]:
        """One palette entry per product category present on the layout"""
        categories = sorted({
            catalog.get(p.product_id).category or 'other'
            for p in placements if p.product_id in catalog
        })
        palette = sns.color_palette('husl', max(len(categories), 1)).as_hex()
        return dict(zip(categories, palette))

    def visualize_store_planogram(self,
                                  planogram: StorePlanogram,
                                  catalog: ProductCatalog,
                                  slots: Sequence[FixtureSlot] = (),
                                  title: Optional[str] = None,
                                  save_path: Optional[str] = None,
                                  show_usage: bool = True) -> plt.Figure:
        """Store layout with fixture boundaries and per-shelf usage"""
        if show_usage:
            fig = plt.figure(figsize=self.figsize)
            gs = fig.add_gridspec(2, 1, height_ratios=[3, 1])
            ax_main = fig.add_subplot(gs[0])
            ax_usage = fig.add_subplot(gs[1])
        else:
            fig, ax_main = plt.subplots(1, 1, figsize=self.figsize)

        title = title or f"Store {planogram.store_id} - {planogram.fixture_type.label} ({planogram.status.value})"
        colors = self._category_colors(planogram.placements, catalog)
        self._draw_layout(ax_main, planogram.width, planogram.height, planogram.shelf_count,
                          planogram.placements, catalog, colors, title)
        if slots:
            self._draw_fixture_boundaries(ax_main, slots)
        self._add_legend(ax_main, colors)

        if show_usage:
            usage = row_usage(planogram.placements, catalog, planogram.width, planogram.shelf_count)
            self._draw_usage(ax_usage, usage)

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')
            self.logger.info(f"Store layout saved to {save_path}")

        return fig

    def visualize_standard_planogram(self,
                                     standard: StandardPlanogram,
                                     catalog: ProductCatalog,
                                     blocks: Mapping[str, Block],
                                     slots: Sequence[FixtureSlot] = (),
                                     save_path: Optional[str] = None) -> plt.Figure:
        """Standard layout with block outlines, split per fixture when slots are given"""
        fig, ax = plt.subplots(1, 1, figsize=self.figsize)

        colors = self._category_colors(standard.placements, catalog)
        self._draw_layout(ax, standard.width, standard.height, standard.shelf_count,
                          standard.placements, catalog, colors, standard.name or standard.id)

        spans = block_spans(standard.blocks, blocks)
        for span in spans:
            outline = Rectangle(
                (span.position_x, 0), span.width, standard.height,
                fill=False, edgecolor='#1F4E79', linewidth=2, linestyle='-'
            )
            ax.add_patch(outline)
            name = blocks[span.block_id].name
            ax.text(span.position_x + span.width / 2, standard.height + 3, name,
                    ha='center', va='bottom', fontsize=9, weight='bold', color='#1F4E79')

        if slots:
            self._draw_fixture_boundaries(ax, slots)
            segments = map_blocks_to_fixtures(slots, spans)
            starts = {fixture_id: start for fixture_id, start, _ in fixture_ranges(slots)}
            for fixture_id, fixture_segments in segments.items():
                for segment in fixture_segments:
                    # Segment bar just under the canvas, in absolute coordinates
                    ax.add_patch(Rectangle(
                        (starts[fixture_id] + segment.rel_start, -6), segment.width, 3,
                        facecolor='#1F4E79', alpha=0.5
                    ))

        self._add_legend(ax, colors)
        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')
            self.logger.info(f"Standard layout saved to {save_path}")

        return fig

    def create_comparison_view(self,
                               standard: StandardPlanogram,
                               planogram: StorePlanogram,
                               catalog: ProductCatalog,
                               save_path: Optional[str] = None) -> plt.Figure:
        """Standard layout above the store layout derived from it"""
        fig, (ax_standard, ax_store) = plt.subplots(2, 1, figsize=(self.figsize[0], self.figsize[1] * 1.5))

        colors = self._category_colors(list(standard.placements) + list(planogram.placements), catalog)
        self._draw_layout(ax_standard, standard.width, standard.height, standard.shelf_count,
                          standard.placements, catalog, colors, f"Standard - {standard.name or standard.id}")
        self._draw_layout(ax_store, planogram.width, planogram.height, planogram.shelf_count,
                          planogram.placements, catalog, colors, f"Store - {planogram.store_id}")

        # Same x scale so width differences are visible
        right = max(standard.width, planogram.width) * 1.05
        ax_standard.set_xlim(-20, right)
        ax_store.set_xlim(-20, right)

        plt.tight_layout()

        if save_path:
            plt.savefig(save_path, dpi=150, bbox_inches='tight')

        return fig

    def _draw_layout(self, ax, width: float, height: float, shelf_count: int,
                     placements: Sequence[Placement], catalog: ProductCatalog,
                     colors: Dict[str, str], title: str):
        """Draw shelf rows top to bottom, shelf 1 on top"""
        ax.set_title(title, fontsize=14, fontweight='bold', pad=20)

        shelf_count = max(shelf_count, 1)
        height = height or DEFAULT_CANVAS_HEIGHT
        row_height = height / shelf_count

        ax.set_xlim(-20, width * 1.05)
        ax.set_ylim(-10, height * 1.1)

        for shelf_index in range(shelf_count):
            y = height - (shelf_index + 1) * row_height
            shelf_rect = FancyBboxPatch(
                (0, y), width, row_height,
                boxstyle="round,pad=0.1",
                facecolor=self.shelf_color,
                edgecolor='#333333',
                linewidth=1.5,
                alpha=0.4
            )
            ax.add_patch(shelf_rect)
            ax.text(-10, y + row_height / 2, f"S{shelf_index + 1}",
                    fontsize=9, va='center', ha='center', weight='bold', color='#333333')

        for placement in placements:
            if placement.shelf_index >= shelf_count:
                continue
            y = height - (placement.shelf_index + 1) * row_height
            self._draw_product(ax, placement, catalog, colors, y, row_height)

        ax.set_xlabel('Width (cm)', fontsize=11)
        ax.set_yticks([])

    def _draw_product(self, ax, placement: Placement, catalog: ProductCatalog,
                      colors: Dict[str, str], shelf_y: float, row_height: float):
        product = catalog.get(placement.product_id)
        if product is None:
            return
        width = product.width * placement.face_count

        product_rect = Rectangle(
            (placement.position_x, shelf_y + 1),
            max(width - 0.5, 0.1),
            row_height - 2,
            facecolor=colors.get(product.category or 'other', self.unknown_color),
            edgecolor='#333333',
            linewidth=1,
            alpha=0.85
        )
        ax.add_patch(product_rect)

        # Facing dividers
        for i in range(1, placement.face_count):
            x = placement.position_x + i * product.width
            ax.plot([x, x], [shelf_y + 1, shelf_y + row_height - 1], color='white', linewidth=0.8)

        if width > 12:
            fontsize = 7 if width > 25 else 6
            ax.text(placement.position_x + width / 2, shelf_y + row_height / 2,
                    '\n'.join(self._format_product_label(product.name, placement.face_count)),
                    ha='center', va='center', fontsize=fontsize, color='#222222')

    def _format_product_label(self, name: str, face_count: int) -> List[str]:
        name_parts = name.split()
        if len(name_parts) > 3:
            name = ' '.join(name_parts[:2]) + '...'
        return [name, f"x{face_count}"]

    def _draw_fixture_boundaries(self, ax, slots: Sequence[FixtureSlot]):
        for fixture_id, start, end in fixture_ranges(slots):
            ax.axvline(x=end, color='#C00000', linestyle='--', linewidth=1, alpha=0.7)
            ax.text((start + end) / 2, -8, fixture_id, ha='center', va='bottom', fontsize=7, color='#C00000')

    def _get_utilization_color(self, utilization: float) -> str:
        """Get color based on utilization percentage"""
        if utilization > 100:
            return '#FF4444'  # Overflow
        elif utilization >= 85:
            return '#44BB44'
        elif utilization >= 50:
            return '#BBBB44'
        else:
            return '#4444FF'

    def _draw_usage(self, ax, usage: Sequence[RowUsage]):
        """Horizontal bars of shelf utilization"""
        ax.set_title('Shelf Utilization', fontsize=10, weight='bold')
        if not usage:
            ax.axis('off')
            return

        labels = [f"S{u.shelf_index + 1}" for u in usage]
        values = [u.utilization for u in usage]
        palette = [self._get_utilization_color(v) for v in values]
        sns.barplot(x=values, y=labels, hue=labels, palette=palette, legend=False, ax=ax, orient='h')

        ax.set_xlabel('Utilization %')
        ax.axvline(x=100, color='red', linestyle='--', alpha=0.5)

    def _add_legend(self, ax, colors: Dict[str, str]):
        if not colors:
            return
        legend_elements = [
            patches.Patch(facecolor=color, label=category.replace('_', ' ').title())
            for category, color in colors.items()
        ]
        ax.legend(handles=legend_elements, loc='upper right', ncol=min(len(legend_elements), 6),
                  frameon=False, fontsize=8)
