# DSHEA grandfather date: ingredients marketed before this need no NDI notification
DSHEA_CUTOFF_TEXT = "October 15, 1994"

# Partial (containment) matches need the shorter name to be at least this long
MIN_PARTIAL_LENGTH = 4

NDI_ON_FILE_NOTE = "NDI notification #{number} on file with FDA (submitted {submitted})"

GRANDFATHERED_NOTE = (
    f"Common dietary ingredient marketed before {DSHEA_CUTOFF_TEXT}. "
    "No NDI notification required (grandfathered under DSHEA)."
)

REQUIRES_VERIFICATION_NOTE = (
    "No NDI notification found and ingredient not recognized as common pre-1994 dietary ingredient. "
    f"If this ingredient was NOT marketed before {DSHEA_CUTOFF_TEXT}, an NDI notification is required "
    "75 days before marketing per DSHEA (FD&C Act §413). "
    "Verify ingredient was on market pre-1994 or has valid NDI notification."
)

VERIFICATION_FAILED_NOTE = "Unable to verify NDI status for this ingredient; manual review required."

NO_INGREDIENT_NOTE = "No ingredient name given; NDI status not evaluated."
