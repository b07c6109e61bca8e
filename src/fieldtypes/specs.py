"""
Built-in field types for the editor palette.
Spec shape per field_type:
{
  "label": "Text Input",          # default label for new fields
  "icon": "bi-input-cursor-text",
  "category": "Basic",
  "requires_type_config": False,  # type_config expected to be filled in
  "requires_options": False,      # choice types need options or a code set
  "has_label": True,              # False for purely decorative types
  "container": False,             # may hold child fields
  "aliases": [...],
}
"""

BUILTIN_TYPES = {
    # ---------- Basic ----------
    "TextBox": {
        "label": "Text Input", "icon": "bi-input-cursor-text", "category": "Basic",
        "aliases": ["text", "textbox", "input"],
    },
    "TextArea": {
        "label": "Text Area", "icon": "bi-textarea-t", "category": "Basic",
        "aliases": ["textarea", "multiline"],
    },
    "Number": {
        "label": "Number", "icon": "bi-123", "category": "Basic",
        "aliases": ["number", "int", "numeric"],
    },
    "Currency": {
        "label": "Currency", "icon": "bi-currency-dollar", "category": "Basic",
        "aliases": ["currency", "money"],
    },

    # ---------- Choice ----------
    "DropDown": {
        "label": "Dropdown", "icon": "bi-menu-button-wide", "category": "Choice",
        "requires_options": True,
        "aliases": ["dropdown", "select"],
    },
    "RadioGroup": {
        "label": "Radio Group", "icon": "bi-ui-radios", "category": "Choice",
        "requires_options": True,
        "aliases": ["radio", "radiogroup"],
    },
    "CheckboxList": {
        "label": "Checkboxes", "icon": "bi-ui-checks", "category": "Choice",
        "requires_options": True,
        "aliases": ["checkboxes", "checkboxlist"],
    },
    "Checkbox": {
        "label": "Single Checkbox", "icon": "bi-check-square", "category": "Choice",
        "aliases": ["checkbox", "bool"],
    },

    # ---------- Date & Time ----------
    "DatePicker": {
        "label": "Date Picker", "icon": "bi-calendar-event", "category": "Date & Time",
        "requires_type_config": True,
        "aliases": ["date", "datepicker"],
    },
    "TimePicker": {
        "label": "Time Picker", "icon": "bi-clock", "category": "Date & Time",
        "aliases": ["time", "timepicker"],
    },
    "DateTimePicker": {
        "label": "Date & Time", "icon": "bi-calendar-week", "category": "Date & Time",
        "requires_type_config": True,
        "aliases": ["datetime", "datetimepicker"],
    },

    # ---------- Advanced ----------
    "FileUpload": {
        "label": "File Upload", "icon": "bi-cloud-upload", "category": "Advanced",
        "requires_type_config": True,
        "aliases": ["file", "upload", "fileupload"],
    },
    "DataGrid": {
        "label": "Data Grid", "icon": "bi-table", "category": "Advanced",
        "requires_type_config": True, "container": True,
        "aliases": ["grid", "datagrid", "table"],
    },
    "AutoComplete": {
        "label": "AutoComplete", "icon": "bi-search", "category": "Advanced",
        "requires_type_config": True,
        "aliases": ["autocomplete", "lookup"],
    },

    # ---------- Layout ----------
    "Section": {
        "label": "Section", "icon": "bi-layout-three-columns", "category": "Layout",
        "container": True,
        "aliases": ["section"],
    },
    "Panel": {
        "label": "Panel", "icon": "bi-window", "category": "Layout",
        "container": True,
        "aliases": ["panel", "group"],
    },
    "Divider": {
        "label": "Divider", "icon": "bi-dash-lg", "category": "Layout",
        "has_label": False,
        "aliases": ["divider", "hr"],
    },
    "Label": {
        "label": "Label/HTML", "icon": "bi-fonts", "category": "Layout",
        "aliases": ["label", "html"],
    },
}
