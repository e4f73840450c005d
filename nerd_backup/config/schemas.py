"""Configuration schema for nerd-backup."""

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "restic_repository": {
            "type": "string",
            "minLength": 1,
            "description": "Repository location, e.g. s3:s3.amazonaws.com/bucket/path",
        },
        "restic_password": {"type": "string", "minLength": 1},
        "aws_access_key_id": {"type": "string", "minLength": 1},
        "aws_secret_access_key": {"type": "string", "minLength": 1},
        "volumes_to_backup": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
            "minItems": 1,
        },
        "tag_prefix": {
            "type": "string",
            "description": "Prepended to the volume name to build the snapshot tag",
        },
        "backup_interval": {
            "type": "string",
            "pattern": r"^P",
            "description": "ISO-8601 duration, e.g. P1D or PT6H",
        },
        "state_dir": {"type": "string", "minLength": 1},
        "restic_binary": {"type": "string", "minLength": 1},
    },
    "required": [
        "restic_repository",
        "restic_password",
        "aws_access_key_id",
        "aws_secret_access_key",
        "volumes_to_backup",
        "tag_prefix",
        "backup_interval",
    ],
    "additionalProperties": False,
}
