# Desktop shell over the map interaction core

from .map_widget import LeafletSurface, PlayzeMapWidget
from .layer_panel import LayerMenuPanel, LayerItemWidget, GroupItemWidget
from .search_bar import LocationSearchBar
from .turbine_panel import TurbinePlannerPanel
from .main_window import MainWindow

__all__ = [
    'LeafletSurface', 'PlayzeMapWidget',
    'LayerMenuPanel', 'LayerItemWidget', 'GroupItemWidget',
    'LocationSearchBar',
    'TurbinePlannerPanel',
    'MainWindow',
]
