ALL_PRODUCTS = "All Products"

# семейства товаров, которые показываем всегда, даже если в каталоге их нет
PREDEFINED_CATEGORIES = (
    "Finished Good",
    "Trading Good",
    "Raw Material",
    "Warranty",
    "Semi Finished Good",
    "Consumable",
    "Packaging",
    "Service",
)

CATEGORY_ICONS = {
    "Finished Good": "📦",
    "Trading Good": "🏪",
    "Raw Material": "⚙️",
    "Warranty": "🛡️",
    "Semi Finished Good": "🔧",
    "Consumable": "💧",
    "Packaging": "📫",
    "Service": "🔧",
    ALL_PRODUCTS: "🛍️",
}
DEFAULT_CATEGORY_ICON = "📦"

TOP_PRICE_LISTS = 4

ORDER_ACTIVATED = "Activated"

MODE_EDIT = "EDIT"
MODE_SUMMARY = "SUMMARY"

SEVERITY_SUCCESS = "success"
SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"
SEVERITY_INFO = "info"

RELATED_TAB = "related"
