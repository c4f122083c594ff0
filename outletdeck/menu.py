"""Built-in menu: used offline, when `menu_items` cannot be read, and to price imported CSV rows."""

from outletdeck.models import MenuItem

MENU_ITEMS = [
    MenuItem("1", "Kunafa Chocolate", 349, "Chocolate", "Rich chocolate kunafa with crispy kataifi pastry"),
    MenuItem("2", "Nutella Cream Cheese Kunafa", 399, "Kunafa", "Creamy kunafa with Nutella and cream cheese filling"),
    MenuItem("3", "Kataifi Cream Cheese Kunafa", 399, "Kunafa", "Traditional kataifi pastry with rich cream cheese"),
    MenuItem("4", "Mixed Dry-Fruit Baklava", 449, "Baklava", "Layered phyllo pastry with mixed dry fruits and honey"),
    MenuItem("5", "Pista Finger Baklava", 399, "Baklava", "Finger-shaped baklava filled with premium pistachios"),
    MenuItem("6", "Triangle Baklava", 399, "Baklava", "Triangle-shaped baklava with nuts and sweet syrup"),
    MenuItem("7", "Almond Basbousa", 299, "Basbousa", "Semolina cake soaked in syrup with almonds"),
    MenuItem("8", "Cashew Basbousa", 299, "Basbousa", "Semolina cake soaked in syrup with cashews"),
]

MENU_BY_NAME = {item.name: item for item in MENU_ITEMS}
