"""Semantic label assignment.

Maps inferred fields onto the fixed catalogue of semantic roles using name
heuristics. Each label is handed out at most once per call; the validator
re-checks uniqueness and compatibility because labels may be edited by hand
after assignment.
"""

from dataclasses import dataclass

from loguru import logger

from copilot_connector.schema.inference import FieldDefinition
from copilot_connector.schema.types import DataType, SemanticLabel


@dataclass(frozen=True)
class SemanticLabelInfo:
    label: SemanticLabel
    display_name: str
    description: str
    preferred_type: DataType
    common_names: tuple[str, ...] = ()


# Catalogue order is the match order
LABEL_CATALOGUE: dict[SemanticLabel, SemanticLabelInfo] = {
    info.label: info
    for info in (
        SemanticLabelInfo(
            SemanticLabel.TITLE,
            "Title",
            "The main name or heading of the item shown in search results",
            DataType.STRING,
            ("title", "name", "subject", "heading", "documentTitle", "ticketSubject", "reportName"),
        ),
        SemanticLabelInfo(
            SemanticLabel.URL,
            "URL",
            "The direct link to open the item in its original system",
            DataType.STRING,
            ("url", "link", "href", "uri", "webUrl", "documentLink", "ticketUrl", "recordUrl"),
        ),
        SemanticLabelInfo(
            SemanticLabel.CREATED_BY,
            "Created By",
            "The user who originally created the item",
            DataType.STRING,
            ("createdBy", "creator", "author", "authorEmail", "submittedBy", "createdByUser"),
        ),
        SemanticLabelInfo(
            SemanticLabel.LAST_MODIFIED_BY,
            "Last Modified By",
            "The user who most recently edited the item",
            DataType.STRING,
            ("lastModifiedBy", "modifiedBy", "updatedBy", "editorEmail", "lastChangedBy"),
        ),
        SemanticLabelInfo(
            SemanticLabel.AUTHORS,
            "Authors",
            "Everyone who participated or collaborated on the item",
            DataType.STRING_COLLECTION,
            ("authors", "author", "authorName", "writers", "reportAuthor", "collaborators"),
        ),
        SemanticLabelInfo(
            SemanticLabel.CREATED_DATE_TIME,
            "Created Date Time",
            "When the item was created in the data source",
            DataType.DATETIME,
            (
                "createdDateTime",
                "created",
                "createdAt",
                "createdOn",
                "submissionDate",
                "entryDate",
                "dateCreated",
            ),
        ),
        SemanticLabelInfo(
            SemanticLabel.LAST_MODIFIED_DATE_TIME,
            "Last Modified Date Time",
            "When the item was last modified in the data source",
            DataType.DATETIME,
            (
                "lastModifiedDateTime",
                "lastModified",
                "modified",
                "updated",
                "lastUpdated",
                "modifiedOn",
                "changeDate",
            ),
        ),
        SemanticLabelInfo(
            SemanticLabel.FILE_NAME,
            "File Name",
            "The name of the file in the data source",
            DataType.STRING,
            ("fileName", "filename", "name", "file", "documentName"),
        ),
        SemanticLabelInfo(
            SemanticLabel.FILE_EXTENSION,
            "File Extension",
            "The extension of the file in the data source",
            DataType.STRING,
            (
                "fileExtension",
                "extension",
                "fileType",
                "type",
                "format",
                "documentType",
                "attachmentType",
            ),
        ),
        SemanticLabelInfo(
            SemanticLabel.ICON_URL,
            "Icon URL",
            "The URL of an icon",
            DataType.STRING,
            ("iconUrl", "icon", "thumbnail", "thumbnailUrl", "logo", "previewImage"),
        ),
        SemanticLabelInfo(
            SemanticLabel.CONTAINER_NAME,
            "Container Name",
            "The name of the container, such as a project or folder",
            DataType.STRING,
            ("containerName", "projectName", "folderName", "groupName", "siteName", "libraryName"),
        ),
        SemanticLabelInfo(
            SemanticLabel.CONTAINER_URL,
            "Container URL",
            "The URL of the container",
            DataType.STRING,
            ("containerUrl", "projectUrl", "folderLink", "groupPage", "siteUrl", "libraryUrl"),
        ),
    )
}

# (type, name fragments, label) applied to fields the catalogue left unlabeled
FALLBACK_RULES: list[tuple[DataType, tuple[str, ...], SemanticLabel]] = [
    (DataType.DATETIME, ("created", "date"), SemanticLabel.CREATED_DATE_TIME),
    (DataType.DATETIME, ("modified", "updated"), SemanticLabel.LAST_MODIFIED_DATE_TIME),
    (DataType.STRING, ("url", "link"), SemanticLabel.URL),
    (DataType.STRING, ("filename", "file"), SemanticLabel.FILE_NAME),
    (DataType.STRING, ("extension", "type"), SemanticLabel.FILE_EXTENSION),
]


def is_label_compatible(label: SemanticLabel, data_type: DataType) -> bool:
    """Whether a label may sit on a field of the given type.

    Labels whose preferred type is String accept
    any field type.
    """
    if label == SemanticLabel.NONE:
        return True
    info = LABEL_CATALOGUE.get(label)
    if info is None:
        return False
    return info.preferred_type == data_type or info.preferred_type == DataType.STRING


def compatible_labels(field: FieldDefinition) -> list[SemanticLabel]:
    """Labels a user may pick for this field, starting with none."""
    labels = [SemanticLabel.NONE]
    for label, info in LABEL_CATALOGUE.items():
        if (
            info.preferred_type == field.data_type
            or info.preferred_type == DataType.STRING
            or field.data_type == DataType.STRING
        ):
            labels.append(label)
    return labels


def assign_labels(fields: list[FieldDefinition]) -> None:
    """Assign semantic labels to fields in place.

    Fields are visited in list order; the first catalogue label whose common
    names match the field name (or display name) and whose type is compatible
    wins. Fields left unlabeled get the fallback name heuristics.
    """
    consumed: set[SemanticLabel] = set()

    for field in fields:
        label = _match_catalogue(field, consumed)
        if label == SemanticLabel.NONE:
            label = _match_fallback(field, consumed)

        field.semantic_label = label
        if field.is_labeled:
            consumed.add(label)
            logger.debug(f"Assigned label '{label.value}' to field '{field.field_name}'")


def _match_catalogue(field: FieldDefinition, consumed: set[SemanticLabel]) -> SemanticLabel:
    name = field.field_name.lower()
    display = field.display_name.lower()

    for label, info in LABEL_CATALOGUE.items():
        if label in consumed:
            continue
        name_match = any(
            common.lower() in name or common.lower() in display for common in info.common_names
        )
        if name_match and is_label_compatible(label, field.data_type):
            return label

    return SemanticLabel.NONE


def _match_fallback(field: FieldDefinition, consumed: set[SemanticLabel]) -> SemanticLabel:
    name = field.field_name.lower()

    for data_type, fragments, label in FALLBACK_RULES:
        if field.data_type != data_type or label in consumed:
            continue
        if any(fragment in name for fragment in fragments):
            return label

    return SemanticLabel.NONE
