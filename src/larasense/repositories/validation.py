"""Validation rules: the built-in Laravel catalog plus custom ``App\\Rules`` classes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from larasense.errors import LarasenseError
from larasense.infrastructure.bridge import decode_json
from larasense.models import ValidationRule
from larasense.repositories.base import Repository

if TYPE_CHECKING:
    from larasense.infrastructure.bridge import ProcessBridge

logger = logging.getLogger(__name__)

CUSTOM_RULES_PHP = r"""
$rules = [];
$rulesPath = app_path('Rules');
if (is_dir($rulesPath)) {
    $iterator = new \RecursiveIteratorIterator(
        new \RecursiveDirectoryIterator($rulesPath, \FilesystemIterator::SKIP_DOTS)
    );
    foreach ($iterator as $file) {
        if ($file->getExtension() !== 'php') continue;
        $content = file_get_contents($file->getRealPath());
        if (preg_match('/class\s+(\w+)/', $content, $m)) {
            $rules[] = $m[1];
        }
    }
}
echo json_encode($rules);
"""

# (name, description, takes parameters)
_BUILT_IN: tuple[tuple[str, str, bool], ...] = (
    ("accepted", "The field must be yes, on, 1, or true", False),
    ("accepted_if", "The field must be accepted when another field equals a value", True),
    ("active_url", "The field must have a valid A or AAAA record", False),
    ("after", "The field must be a date after the given date", True),
    ("after_or_equal", "The field must be a date after or equal to the given date", True),
    ("alpha", "The field must be entirely alphabetic characters", False),
    ("alpha_dash", "The field may have alpha-numeric, dashes, and underscores", False),
    ("alpha_num", "The field must be entirely alpha-numeric characters", False),
    ("array", "The field must be a PHP array", False),
    ("ascii", "The field must be entirely ASCII characters", False),
    ("bail", "Stop running validation rules after the first failure", False),
    ("before", "The field must be a date before the given date", True),
    ("before_or_equal", "The field must be a date before or equal to the given date", True),
    ("between", "The field must have a size between min and max", True),
    ("boolean", "The field must be able to be cast as a boolean", False),
    ("confirmed", "The field must have a matching field of {field}_confirmation", False),
    ("contains", "The field must contain the given value", True),
    ("current_password", "The field must match the authenticated user's password", False),
    ("date", "The field must be a valid date", False),
    ("date_equals", "The field must be equal to the given date", True),
    ("date_format", "The field must match the given date format", True),
    ("decimal", "The field must be a decimal number with specified precision", True),
    ("declined", "The field must be no, off, 0, or false", False),
    ("different", "The field must have a different value than another field", True),
    ("digits", "The field must be numeric and have an exact length", True),
    ("digits_between", "The field must be numeric between the given length", True),
    ("dimensions", "The image must meet dimension constraints", True),
    ("distinct", "The field must not have any duplicate values in an array", False),
    ("doesnt_end_with", "The field must not end with one of the given values", True),
    ("doesnt_start_with", "The field must not start with one of the given values", True),
    ("email", "The field must be a valid email address", False),
    ("ends_with", "The field must end with one of the given values", True),
    ("enum", "The field must contain a valid enum value", True),
    ("exclude", "The field will be excluded from the request data", False),
    ("exclude_if", "The field will be excluded if another field has a given value", True),
    ("exclude_unless", "The field will be excluded unless another field has a given value", True),
    ("exists", "The field must exist in the database table", True),
    ("extensions", "The file must have one of the given extensions", True),
    ("file", "The field must be a successfully uploaded file", False),
    ("filled", "The field must not be empty when it is present", False),
    ("gt", "The field must be greater than another field", True),
    ("gte", "The field must be greater than or equal to another field", True),
    ("hex_color", "The field must contain a valid hex color value", False),
    ("image", "The file must be an image (jpg, jpeg, png, bmp, gif, svg, webp)", False),
    ("in", "The field must be included in the given list of values", True),
    ("in_array", "The field must exist in another field's values", True),
    ("integer", "The field must be an integer", False),
    ("ip", "The field must be an IP address", False),
    ("json", "The field must be a valid JSON string", False),
    ("list", "The field must be an array that is a list", False),
    ("lowercase", "The field must be lowercase", False),
    ("lt", "The field must be less than another field", True),
    ("lte", "The field must be less than or equal to another field", True),
    ("mac_address", "The field must be a MAC address", False),
    ("max", "The field must be less than or equal to a maximum value", True),
    ("max_digits", "The integer must have a maximum number of digits", True),
    ("mimetypes", "The file must match one of the given MIME types", True),
    ("mimes", "The file must have a MIME type corresponding to one of the listed extensions", True),
    ("min", "The field must have a minimum value", True),
    ("min_digits", "The integer must have a minimum number of digits", True),
    ("missing", "The field must not be present in the input data", False),
    ("missing_if", "The field must not be present when another field equals a value", True),
    ("missing_unless", "The field must not be present unless another field equals a value", True),
    ("multiple_of", "The field must be a multiple of the given value", True),
    ("not_in", "The field must not be included in the given list of values", True),
    ("not_regex", "The field must not match the given regular expression", True),
    ("nullable", "The field may be null", False),
    ("numeric", "The field must be numeric", False),
    ("password", "The field must match the authenticated user's password", False),
    ("present", "The field must be present in the input data", False),
    ("present_if", "The field must be present when another field equals a value", True),
    ("present_unless", "The field must be present unless another field equals a value", True),
    ("prohibited", "The field must be empty or not present", False),
    ("prohibited_if", "The field must be empty when another field equals a value", True),
    ("prohibited_unless", "The field must be empty unless another field equals a value", True),
    ("prohibits", "If the field is present, no other specified fields can be present", True),
    ("regex", "The field must match the given regular expression", True),
    ("required", "The field must be present in the input data and not empty", False),
    ("required_array_keys", "The field must contain all of the given keys", True),
    ("required_if", "The field is required when another field equals a value", True),
    ("required_if_accepted", "The field is required when another field is accepted", True),
    ("required_unless", "The field is required unless another field equals a value", True),
    ("required_with", "The field is required when any of the specified fields are present", True),
    ("required_with_all", "The field is required when all of the specified fields are present", True),
    ("required_without", "The field is required when any of the specified fields are not present", True),
    ("required_without_all", "The field is required when all of the specified fields are not present", True),
    ("same", "The field must match another field", True),
    ("size", "The field must have a size matching the given value", True),
    ("sometimes", "Only validate the field if it is present", False),
    ("starts_with", "The field must start with one of the given values", True),
    ("string", "The field must be a string", False),
    ("timezone", "The field must be a valid timezone identifier", False),
    ("unique", "The field must be unique in the database table", True),
    ("uppercase", "The field must be uppercase", False),
    ("url", "The field must be a valid URL", False),
    ("ulid", "The field must be a valid ULID", False),
    ("uuid", "The field must be a valid UUID", False),
)

BUILT_IN_RULES: tuple[ValidationRule, ...] = tuple(
    ValidationRule(name, description, has_parameters) for name, description, has_parameters in _BUILT_IN
)


class ValidationRepository(Repository[ValidationRule]):
    """Built-in rules are always served; custom rule discovery is best effort."""

    domain = "validation"
    ttl = 30 * 60.0

    def __init__(self, bridge: ProcessBridge, *, ttl: float | None = None) -> None:
        super().__init__(ttl=ttl)
        self.bridge = bridge

    def key_of(self, record: ValidationRule) -> str:
        return record.name

    def _custom_rules(self) -> list[ValidationRule]:
        try:
            names = decode_json(self.bridge.run(CUSTOM_RULES_PHP), list, "validation")
        except LarasenseError as exc:
            logger.info("[validation] Custom rules unavailable: %s", exc)
            return []
        return [
            ValidationRule(f"App\\Rules\\{name}", f"Custom rule: {name}", custom=True)
            for name in names
            if isinstance(name, str) and name
        ]

    def _acquire(self) -> list[ValidationRule]:
        custom = self._custom_rules()
        logger.info(
            "[validation] %d built-in, %d custom rules", len(BUILT_IN_RULES), len(custom)
        )
        return [*BUILT_IN_RULES, *custom]

    def _on_failure(self, exc: Exception) -> None:
        if not self.count():
            self._publish(BUILT_IN_RULES)
