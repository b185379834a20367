"""Built-in resource field catalogs.

This module is pure data: one JSON-compatible dict per resource type, in the
shape parsed by :meth:`constellation.schema.SchemaRegistry.parse_resource`.
Logic lives in schema.py.

Field entries accept:
  name, type (string | number | integer | boolean | object | array | any),
  description, required, enum, items (element kind for arrays),
  variant (codec family for tagged-union fields), fields (nested object
  shape, strict), updatable (default true), nullable (default false).
Resources may also carry "required_options": {type value: options keys}, and
"creatable": false for records that exist up front and can only be updated.
"""

from __future__ import annotations

from typing import Any

# ---------------------------------------------------------------------------
# Shared descriptions
# ---------------------------------------------------------------------------

_TAGS = "Array of tags for categorizing and filtering (e.g. ['onboarding', 'high-priority'])"
_ARCHIVED_AT = "ISO timestamp when the resource was archived. Empty string '' means not archived."
_TITLE = "Internal title/name used to find this resource"

FORM_FIELD_TYPES: tuple[str, ...] = (
    "Rich Text", "description", "string", "stringLong", "number", "email", "phone",
    "date", "dateString", "rating", "Time", "Timezone",
    "Conditions", "Allergies", "Emotii", "Hidden Value", "Redirect", "Height",
    "Appointment Booking", "multiple_choice", "file", "files", "signature", "ranking",
    "Question Group", "Table Input", "Address", "Chargebee", "Stripe", "Dropdown",
    "Database Select", "Medications", "Related Contacts", "Insurance",
)  # fmt: skip

# options keys a FormField of a given type must carry.
FORM_FIELD_REQUIRED_OPTIONS: dict[str, tuple[str, ...]] = {
    "multiple_choice": ("choices",),
    "Dropdown": ("choices",),
    "ranking": ("choices",),
    "rating": ("from", "to"),
    "Database Select": ("databaseId", "databaseLabel"),
    "Appointment Booking": ("bookingPageId",),
}

DATABASE_FIELD_TYPES: tuple[str, ...] = (
    "Text", "Email", "Phone", "Text Long", "Text List", "Number",
    "Address", "Multiple Select", "Dropdown", "Timestamp", "Date",
)  # fmt: skip

_INTAKE_MODES = ["required", "optional", "hidden"]

# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------

_FORMS: dict[str, Any] = {
    "resource": "forms",
    "display_name": "Form",
    "description": (
        "A questionnaire container. Create the form first, then its FormFields in link order; "
        "fields are never embedded in the form itself."
    ),
    "depends_on": [],
    "fields": [
        {"name": "title", "type": "string", "required": True, "description": _TITLE},
        {"name": "displayTitle", "type": "string", "description": "Title shown to endusers instead of the internal title"},
        {"name": "description", "type": "string", "description": "Internal description of the form's purpose"},
        {"name": "type", "type": "string", "enum": ["note", "enduserFacing"],
         "description": "'enduserFacing' (default) for patient-completed forms, 'note' for staff documentation"},
        {"name": "intakePhone", "type": "string", "enum": _INTAKE_MODES,
         "description": "Whether the public intake asks for a phone number"},
        {"name": "intakeDateOfBirth", "type": "string", "enum": _INTAKE_MODES,
         "description": "Whether the public intake asks for a date of birth"},
        {"name": "intakeState", "type": "string", "enum": _INTAKE_MODES,
         "description": "Whether the public intake asks for a US state"},
        {"name": "intakeGender", "type": "string", "enum": _INTAKE_MODES,
         "description": "Whether the public intake asks for gender"},
        {"name": "intakeGenderIsSex", "type": "boolean", "description": "Label the gender intake question as sex"},
        {"name": "intakeEmailRequired", "type": "boolean", "description": "Require an email on the public intake"},
        {"name": "intakeEmailHidden", "type": "boolean", "description": "Hide the email question on the public intake"},
        {"name": "allowPublicURL", "type": "boolean", "description": "Allow submission through a public link"},
        {"name": "thanksMessage", "type": "string", "description": "Plain text shown after submission"},
        {"name": "htmlThanksMessage", "type": "string", "description": "HTML shown after submission"},
        {"name": "customSubject", "type": "string", "description": "Subject of the email that sends this form"},
        {"name": "customGreeting", "type": "string", "description": "Greeting of the email that sends this form"},
        {"name": "customSignature", "type": "string", "description": "Signature of the email that sends this form"},
        {
            "name": "scoring",
            "type": "array",
            "items": "object",
            "description": (
                "Scoring rules. Each rule adds 'score' to the named score 'title' when the response to "
                "'fieldId' equals 'response' (or always, when response is omitted). fieldId must be a "
                "FormField of this form."
            ),
            "fields": [
                {"name": "title", "type": "string", "required": True, "description": "Name of the computed score"},
                {"name": "fieldId", "type": "string", "required": True, "description": "FormField whose answer is scored"},
                {"name": "response", "type": "string", "description": "Answer that earns the score"},
                {"name": "score", "type": "any", "required": True, "description": "Points awarded (number, or a numeric string)"},
            ],
        },
        {"name": "realTimeScoring", "type": "boolean", "description": "Compute scores while the form is being filled"},
        {"name": "customization", "type": "object", "description": "Public form presentation settings (colors, labels, layout)"},
        {"name": "submitRedirectURL", "type": "string", "description": "URL to open after submission"},
        {"name": "productIds", "type": "array", "items": "string", "description": "Products purchasable within the form"},
        {"name": "language", "type": "string", "description": "Language code of the form content"},
        {"name": "disabled", "type": "boolean", "description": "Prevent new submissions"},
        {"name": "lockResponsesOnSubmission", "type": "boolean", "description": "Make responses read-only once submitted"},
        {"name": "hideFromCompose", "type": "boolean", "description": "Hide from the manual send-form menu"},
        {"name": "hideAfterUnsubmittedInMS", "type": "number", "description": "Hide an unsubmitted form after this many ms"},
        {"name": "allowPortalSubmission", "type": "boolean", "description": "Let endusers start the form from the portal"},
        {"name": "ipAddressCustomField", "type": "string", "description": "Enduser field that records the submitter's IP address"},
        {"name": "gtmTag", "type": "string", "description": "Google Tag Manager id for the public form"},
        {"name": "externalId", "type": "string", "description": "Identifier in an external system"},
        {"name": "canvasId", "type": "string", "description": "Canvas EHR questionnaire id (passthrough)"},
        {"name": "elationVisitNoteType", "type": "string", "description": "Elation visit note type (passthrough)"},
        {"name": "tags", "type": "array", "items": "string", "description": _TAGS},
        {"name": "archivedAt", "type": "string", "description": _ARCHIVED_AT},
    ],
}

_FORM_FIELDS: dict[str, Any] = {
    "resource": "form_fields",
    "display_name": "Form Field",
    "description": (
        "One question of a form. Create fields one at a time in link order: the root field first, then each "
        "field after the field it links to, using the id returned by the previous create."
    ),
    "depends_on": ["forms", "databases", "appointment_booking_pages"],
    "required_options": FORM_FIELD_REQUIRED_OPTIONS,
    "fields": [
        {"name": "formId", "type": "string", "required": True, "updatable": False,
         "description": "Id of the form this field belongs to"},
        {"name": "title", "type": "string", "required": True, "description": "Question text or label shown for this field"},
        {"name": "type", "type": "string", "required": True, "updatable": False, "enum": list(FORM_FIELD_TYPES),
         "description": "Input type; determines the UI and which options keys apply"},
        {
            "name": "previousFields",
            "type": "array",
            "required": True,
            "variant": "link",
            "description": (
                "Position and display condition. Exactly one field of a form uses [{type: 'root', info: {}}]; "
                "every other field links to an existing field with 'after', 'previousEquals' or 'compoundLogic'. "
                "compoundLogic conditions may reference field ids, derived values (age, bmi, score, gender, state) "
                "and enduser properties; operators: $exists $gt $gte $lt $lte $eq $ne $in $nin."
            ),
        },
        {"name": "isOptional", "type": "boolean", "description": "Whether the field may be skipped (default false)"},
        {"name": "placeholder", "type": "string", "description": "Placeholder text shown in the input"},
        {"name": "description", "type": "string", "description": "Help text shown below the field"},
        {"name": "htmlDescription", "type": "string", "description": "HTML help text (for 'description' and 'Rich Text' fields)"},
        {"name": "headerText", "type": "string", "description": "Header shown above the field"},
        {"name": "internalNote", "type": "string", "description": "Staff-only note"},
        {
            "name": "options",
            "type": "object",
            "description": (
                "Type-specific settings: choices for multiple_choice/Dropdown/ranking, from/to for rating, "
                "databaseId/databaseLabel for Database Select, bookingPageId for Appointment Booking. "
                "Integration keys are passed through unchecked."
            ),
        },
        {"name": "intakeField", "type": "string", "nullable": True,
         "description": "Enduser field this response is written to (e.g. 'dateOfBirth' or a custom field name)"},
        {"name": "sharedWithEnduser", "type": "boolean", "description": "Show the response to the enduser in their portal"},
        {"name": "prepopulateFromFields", "type": "boolean", "description": "Prefill from existing enduser data"},
        {"name": "disabledWhenPrepopulated", "type": "boolean", "description": "Lock the input when it was prefilled"},
        {"name": "externalId", "type": "string", "description": "Identifier in an external system"},
        {"name": "highlightOnTimeline", "type": "boolean", "description": "Highlight the response on the enduser timeline"},
        {"name": "fullZIP", "type": "boolean", "description": "Address fields: require ZIP+4"},
        {"name": "titleFontSize", "type": "number", "description": "Title font size in pixels"},
    ],
}

# ---------------------------------------------------------------------------
# Messaging and scheduling
# ---------------------------------------------------------------------------

_TEMPLATES: dict[str, Any] = {
    "resource": "templates",
    "display_name": "Message Template",
    "description": "Reusable email/SMS/chat content referenced by automation steps and reminders",
    "depends_on": [],
    "fields": [
        {"name": "title", "type": "string", "required": True, "description": _TITLE},
        {"name": "subject", "type": "string", "required": True,
         "description": "Email subject; supports variables such as {{enduser.fname}}"},
        {"name": "message", "type": "string", "required": True,
         "description": "Plain text body used for SMS/chat and as the email text part"},
        {"name": "html", "type": "string", "description": "HTML email body"},
        {"name": "type", "type": "string", "enum": ["enduser", "Reply", "team"],
         "description": "'enduser' (default) for patient-facing messages, 'Reply' for quick replies, 'team' for internal"},
        {"name": "mode", "type": "string", "enum": ["html", "richtext"], "description": "Editor used for the template"},
        {"name": "isMarketing", "type": "boolean", "description": "Marketing content (unsubscribe rules apply)"},
        {"name": "forChannels", "type": "array", "items": "string", "description": "Channels the template is offered for"},
        {"name": "forRoles", "type": "array", "items": "string", "description": "Roles allowed to use the template"},
        {"name": "forEntityTypes", "type": "array", "items": "string", "description": "Entity types the template applies to"},
        {"name": "mmsAttachmentURLs", "type": "array", "items": "string", "description": "Media attached to SMS sends"},
        {"name": "hideFromCompose", "type": "boolean", "description": "Hide from the manual compose menu"},
        {"name": "tags", "type": "array", "items": "string", "description": _TAGS},
        {"name": "archivedAt", "type": "string", "description": _ARCHIVED_AT},
    ],
}

_CODING_FIELDS = [
    {"name": "system", "type": "string", "required": True, "description": "Coding system URI"},
    {"name": "code", "type": "string", "required": True, "description": "Code value"},
    {"name": "display", "type": "string", "required": True, "description": "Display text"},
]

_CALENDAR_EVENT_TEMPLATES: dict[str, Any] = {
    "resource": "calendar_event_templates",
    "display_name": "Calendar Event Template",
    "description": "An appointment type: duration, video settings, reminders and care-plan content",
    "depends_on": ["templates", "journeys", "forms"],
    "fields": [
        {"name": "title", "type": "string", "required": True, "description": _TITLE},
        {"name": "durationInMinutes", "type": "number", "required": True, "description": "Length of the appointment"},
        {"name": "description", "type": "string", "description": "Internal description"},
        {"name": "displayTitle", "type": "string", "description": "Title shown to endusers"},
        {"name": "displayDescription", "type": "string", "description": "Description shown to endusers"},
        {"name": "instructions", "type": "string", "description": "Preparation instructions sent to endusers"},
        {"name": "type", "type": "string", "description": "Free-form appointment category"},
        {"name": "color", "type": "string", "description": "Calendar color"},
        {"name": "image", "type": "string", "description": "Image URL shown when booking"},
        {
            "name": "reminders",
            "type": "array",
            "variant": "reminder",
            "description": (
                "Reminders sent before the appointment. Each is {type, info, msBeforeStartTime} with type one of "
                "enduser-notification, user-notification, add-to-journey, Remove From Journey, webhook, create-ticket."
            ),
        },
        {"name": "enableVideoCall", "type": "boolean", "description": "Attach a video call to the appointment"},
        {"name": "videoIntegration", "type": "string", "enum": ["Zoom", "No Integration"], "description": "Video provider"},
        {"name": "generateZoomLinkWhenBooked", "type": "boolean", "description": "Create a Zoom link at booking time"},
        {"name": "enableSelfScheduling", "type": "boolean", "description": "Allow endusers to book this type themselves"},
        {"name": "bufferStartMinutes", "type": "number", "description": "Blocked time before the appointment"},
        {"name": "bufferEndMinutes", "type": "number", "description": "Blocked time after the appointment"},
        {"name": "preventCancelMinutesInAdvance", "type": "number", "description": "Cancellation cutoff"},
        {"name": "preventRescheduleMinutesInAdvance", "type": "number", "description": "Reschedule cutoff"},
        {"name": "enduserAttendeeLimit", "type": "number", "description": "Maximum endusers in a group appointment"},
        {"name": "allowGroupReschedule", "type": "boolean", "description": "Let any attendee reschedule a group appointment"},
        {"name": "requiresEnduser", "type": "boolean", "description": "An enduser attendee is mandatory"},
        {"name": "restrictedByState", "type": "boolean", "description": "Only hosts licensed in the enduser's state"},
        {"name": "confirmationEmailDisabled", "type": "boolean", "description": "Skip the confirmation email"},
        {"name": "confirmationSMSDisabled", "type": "boolean", "description": "Skip the confirmation SMS"},
        {"name": "sendIcsEmail", "type": "boolean", "description": "Email a calendar invite"},
        {"name": "carePlanForms", "type": "array", "items": "string", "description": "Form ids shared after the visit"},
        {"name": "carePlanContent", "type": "array", "items": "string", "description": "Content ids shared after the visit"},
        {"name": "carePlanTasks", "type": "array", "items": "string", "description": "Tasks created after the visit"},
        {"name": "carePlanFiles", "type": "array", "items": "string", "description": "File ids shared after the visit"},
        {"name": "productIds", "type": "array", "items": "string", "description": "Products purchased with the booking"},
        {"name": "portalSettings", "type": "object", "description": "Portal display settings"},
        {"name": "canvasCoding", "type": "object", "fields": _CODING_FIELDS, "description": "Canvas EHR coding (passthrough)"},
        {"name": "athenaTypeId", "type": "string", "description": "Athena appointment type id (passthrough)"},
        {"name": "dontSyncToCanvas", "type": "boolean", "description": "Skip Canvas sync"},
        {"name": "dontSyncToElation", "type": "boolean", "description": "Skip Elation sync"},
        {"name": "apiOnly", "type": "boolean", "description": "Bookable only through the API"},
        {"name": "publicRead", "type": "boolean", "description": "Readable without authentication"},
        {"name": "tags", "type": "array", "items": "string", "description": _TAGS},
        {"name": "archivedAt", "type": "string", "description": _ARCHIVED_AT},
    ],
}

_APPOINTMENT_LOCATIONS: dict[str, Any] = {
    "resource": "appointment_locations",
    "display_name": "Appointment Location",
    "description": "A physical or virtual place where appointments happen",
    "depends_on": [],
    "fields": [
        {"name": "title", "type": "string", "required": True, "description": "Location name (e.g. 'Main Office', 'Telehealth')"},
        {"name": "address", "type": "string", "description": "Street address"},
        {"name": "city", "type": "string", "description": "City"},
        {"name": "state", "type": "string", "description": "State (2-letter code)"},
        {"name": "zipCode", "type": "string", "description": "ZIP or postal code"},
        {"name": "phone", "type": "string", "description": "Contact phone number"},
        {"name": "timezone", "type": "string", "description": "IANA timezone (e.g. 'America/New_York')"},
        {"name": "instructions", "type": "string", "description": "Parking, check-in or join instructions"},
        {"name": "canvasLocationId", "type": "string", "description": "Canvas EHR location id (passthrough)"},
        {"name": "healthieLocationId", "type": "string", "description": "Healthie location id (passthrough)"},
        {"name": "healthieContactType", "type": "string", "description": "Healthie contact type (passthrough)"},
        {"name": "healthieUseZoom", "type": "boolean", "description": "Use Zoom for Healthie appointments here"},
        {"name": "tags", "type": "array", "items": "string", "description": _TAGS},
    ],
}

_APPOINTMENT_BOOKING_PAGES: dict[str, Any] = {
    "resource": "appointment_booking_pages",
    "display_name": "Appointment Booking Page",
    "description": "A public scheduling page offering one or more appointment types at one or more locations",
    "depends_on": ["calendar_event_templates", "appointment_locations"],
    "fields": [
        {"name": "title", "type": "string", "required": True, "description": _TITLE},
        {"name": "calendarEventTemplateIds", "type": "array", "items": "string", "required": True,
         "description": "Appointment types offered on the page"},
        {"name": "locationIds", "type": "array", "items": "string", "required": True,
         "description": "Locations offered on the page"},
        {"name": "requireLocationSelection", "type": "boolean", "description": "Ask the enduser to pick a location"},
        {"name": "collectReason", "type": "string", "enum": ["Do Not Collect", "Optional", "Required"],
         "description": "Whether to ask for the reason for the visit"},
        {"name": "emailFieldBehavior", "type": "string", "enum": ["required", "optional", "hidden"],
         "description": "How the email question is shown"},
        {
            "name": "terms",
            "type": "array",
            "items": "object",
            "description": "Terms the enduser must accept before booking",
            "fields": [
                {"name": "title", "type": "string", "required": True, "description": "Link text"},
                {"name": "link", "type": "string", "required": True, "description": "URL of the terms"},
            ],
        },
        {
            "name": "restrictionsByTemplate",
            "type": "array",
            "items": "object",
            "description": "Per appointment type booking restrictions",
            "fields": [
                {"name": "templateId", "type": "string", "required": True, "description": "Calendar event template id"},
                {"name": "restrictions", "type": "object", "required": True, "description": "Restriction settings"},
            ],
        },
        {"name": "limitedToCareTeam", "type": "boolean", "description": "Only show hosts on the enduser's care team"},
        {"name": "limitedByState", "type": "boolean", "description": "Only show hosts licensed in the enduser's state"},
        {"name": "limitedByTagsPortal", "type": "array", "items": "string", "description": "Portal tag restrictions"},
        {"name": "publicUserTags", "type": "array", "items": "string", "description": "Host tags shown publicly"},
        {"name": "hoursBeforeBookingAllowed", "type": "any", "description": "Minimum notice in hours, or ''"},
        {"name": "startDate", "type": "string", "description": "First bookable date (ISO)"},
        {"name": "endDate", "type": "string", "description": "Last bookable date (ISO)"},
        {"name": "intakeTitle", "type": "string", "description": "Heading of the intake step"},
        {"name": "intakeDescription", "type": "string", "description": "Text of the intake step"},
        {"name": "thankYouTitle", "type": "string", "description": "Heading after booking"},
        {"name": "thankYouDescription", "type": "string", "description": "Text after booking"},
        {"name": "thankYouRedirectURL", "type": "string", "description": "URL opened after booking"},
        {"name": "primaryColor", "type": "string", "description": "Primary brand color"},
        {"name": "secondaryColor", "type": "string", "description": "Secondary brand color"},
        {"name": "backgroundColor", "type": "string", "description": "Page background color"},
        {"name": "topLogo", "type": "string", "description": "Logo URL"},
        {"name": "hiddenFromPortal", "type": "boolean", "description": "Hide from the enduser portal"},
        {"name": "gtmTag", "type": "string", "description": "Google Tag Manager id"},
        {"name": "archivedAt", "type": "string", "description": _ARCHIVED_AT},
    ],
}

# ---------------------------------------------------------------------------
# Databases
# ---------------------------------------------------------------------------

_DATABASES: dict[str, Any] = {
    "resource": "databases",
    "display_name": "Database",
    "description": "A custom table (e.g. referral providers) whose records can be picked by Database Select fields",
    "depends_on": [],
    "fields": [
        {"name": "title", "type": "string", "required": True, "description": _TITLE},
        {
            "name": "fields",
            "type": "array",
            "items": "object",
            "required": True,
            "description": "Column definitions",
            "fields": [
                {"name": "type", "type": "string", "required": True, "enum": list(DATABASE_FIELD_TYPES),
                 "description": "Column type"},
                {"name": "label", "type": "string", "required": True, "description": "Column label (unique)"},
                {"name": "required", "type": "boolean", "description": "Value required on every record"},
                {"name": "options", "type": "any", "description": "Dropdown/Multiple Select choices or width settings"},
                {"name": "showConditions", "type": "object", "description": "When to show the column"},
                {"name": "hideFromTable", "type": "boolean", "description": "Hide the column in table views"},
                {"name": "wrap", "type": "string", "description": "Text wrapping mode"},
                {"name": "width", "type": "string", "description": "Column width"},
            ],
        },
        {"name": "visibleForRoles", "type": "array", "items": "string", "description": "Roles allowed to view records"},
        {"name": "isReferralDatabase", "type": "boolean", "description": "Enable referral features"},
    ],
}

_DATABASE_RECORDS: dict[str, Any] = {
    "resource": "database_records",
    "display_name": "Database Record",
    "description": "One row of a database; values are matched to columns by label",
    "depends_on": ["databases"],
    "fields": [
        {"name": "databaseId", "type": "string", "required": True, "updatable": False,
         "description": "Id of the database this record belongs to"},
        {
            "name": "values",
            "type": "array",
            "items": "object",
            "required": True,
            "description": "Column values: {type, label, value}",
            "fields": [
                {"name": "type", "type": "string", "required": True, "enum": list(DATABASE_FIELD_TYPES),
                 "description": "Column type"},
                {"name": "label", "type": "string", "required": True, "description": "Column label"},
                {"name": "value", "type": "any", "required": True, "description": "Value (shape depends on type)"},
            ],
        },
    ],
}

# ---------------------------------------------------------------------------
# Automation
# ---------------------------------------------------------------------------

_JOURNEYS: dict[str, Any] = {
    "resource": "journeys",
    "display_name": "Journey",
    "description": (
        "A named workflow container. Steps are separate automation_steps resources; at least one step "
        "needs an onJourneyStart event."
    ),
    "depends_on": [],
    "fields": [
        {"name": "title", "type": "string", "required": True, "description": _TITLE},
        {"name": "description", "type": "string", "description": "Purpose of the journey"},
        {"name": "onIncomingEnduserCommunication", "type": "string", "enum": ["Remove", ""],
         "description": "'Remove' takes the enduser out of the journey when they message in; '' does nothing"},
        {"name": "states", "type": "array", "items": "object", "description": "Named journey states"},
        {"name": "defaultState", "type": "string", "description": "State assigned on entry"},
        {"name": "tags", "type": "array", "items": "string", "description": _TAGS},
        {"name": "archivedAt", "type": "string", "description": _ARCHIVED_AT},
    ],
}

_AUTOMATION_STEPS: dict[str, Any] = {
    "resource": "automation_steps",
    "display_name": "Automation Step",
    "description": (
        "One action in a journey, activated by its events. Create steps in chain order: every event other than "
        "onJourneyStart names an earlier step by automationStepId."
    ),
    "depends_on": ["journeys", "templates", "forms"],
    "fields": [
        {"name": "journeyId", "type": "string", "required": True, "updatable": False,
         "description": "Id of the journey this step belongs to"},
        {
            "name": "events",
            "type": "array",
            "required": True,
            "variant": "step_event",
            "description": (
                "What activates this step: onJourneyStart (entry point), afterAction (after another step, with a "
                "delay), formResponse/formResponses, waitForTrigger, onError, ticketCompleted, onCallOutcome, "
                "onAIDecision."
            ),
        },
        {
            "name": "action",
            "type": "object",
            "required": True,
            "variant": "step_action",
            "description": "What the step does, e.g. {type: 'sendEmail', info: {templateId, senderId}}",
        },
        {"name": "enduserConditions", "type": "object",
         "description": "Query filter restricting which endusers the step runs for (not evaluated locally)"},
        {"name": "conditions", "type": "array", "items": "object", "description": "Legacy conditions"},
        {"name": "continueOnError", "type": "boolean", "description": "Continue the journey if the action fails"},
        {"name": "flowchartUI", "type": "object", "description": "Position in the journey editor ({x, y})"},
        {"name": "tags", "type": "array", "items": "string", "description": _TAGS},
    ],
}

_AUTOMATION_TRIGGERS: dict[str, Any] = {
    "resource": "automation_triggers",
    "display_name": "Automation Trigger",
    "description": (
        "A platform-wide listener. Global membership actions (Add To Journey, Remove From Journey, tag and field "
        "actions) must not set journeyId; Move To Step must set journeyId."
    ),
    "depends_on": ["journeys", "forms"],
    "fields": [
        {"name": "title", "type": "string", "required": True, "description": _TITLE},
        {"name": "event", "type": "object", "required": True, "variant": "trigger_event",
         "description": "Occurrence that fires the trigger, e.g. {type: 'Form Submitted', info: {formId}}"},
        {"name": "action", "type": "object", "required": True, "variant": "trigger_action",
         "description": "What happens when it fires, e.g. {type: 'Add To Journey', info: {journeyId}}"},
        {"name": "status", "type": "string", "enum": ["Active", "Inactive"], "description": "Only Active triggers fire"},
        {"name": "journeyId", "type": "string",
         "description": "Journey containing the waitForTrigger step; set only for Move To Step"},
        {"name": "enduserCondition", "type": "object", "description": "Query filter on the enduser (not evaluated locally)"},
        {"name": "oncePerEnduser", "type": "boolean", "description": "Fire at most once per enduser"},
        {"name": "tags", "type": "array", "items": "string", "description": _TAGS},
        {"name": "archivedAt", "type": "string", "description": _ARCHIVED_AT},
    ],
}

# ---------------------------------------------------------------------------
# Organization (update-only: the record exists before any build starts)
# ---------------------------------------------------------------------------

_ORGANIZATIONS: dict[str, Any] = {
    "resource": "organizations",
    "display_name": "Organization",
    "description": (
        "Organization-wide configuration. Records already exist and can only be updated. "
        "settings and portalSettings are deeply nested: read the organization first and prefer the default "
        "merge, since replaceObjectFields=true discards every sibling section you do not resend."
    ),
    "depends_on": [],
    "creatable": False,
    "fields": [
        {"name": "timezone", "type": "string", "description": "Organization timezone (e.g. 'America/New_York')"},
        {"name": "owner", "type": "string", "description": "User id of the organization owner"},
        {"name": "roles", "type": "array", "items": "string", "description": "Custom role names"},
        {"name": "skills", "type": "array", "items": "string", "description": "Custom skill tags for providers"},
        {"name": "subdomains", "type": "array", "items": "string", "description": "Subdomains of the organization"},
        {"name": "themeColor", "type": "string", "description": "Primary theme color in hex (e.g. '#4A90E2')"},
        {"name": "themeColorSecondary", "type": "string", "description": "Secondary theme color in hex"},
        {"name": "customPortalURL", "type": "string", "description": "Custom domain for the patient portal"},
        {"name": "customPortalURLs", "type": "array", "items": "string", "description": "Portal URLs for multi-portal setups"},
        {"name": "customProviderURL", "type": "string", "description": "Custom domain for the provider dashboard"},
        {"name": "customTermsOfService", "type": "string", "description": "URL of custom terms of service"},
        {"name": "customPrivacyPolicy", "type": "string", "description": "URL of a custom privacy policy"},
        {
            "name": "customPolicies",
            "type": "array",
            "items": "object",
            "description": "Custom policy documents",
            "fields": [
                {"name": "title", "type": "string", "required": True, "description": "Policy title"},
                {"name": "url", "type": "string", "required": True, "description": "Policy URL"},
            ],
        },
        {"name": "customPoliciesVersion", "type": "string", "description": "Bump to require re-acceptance of policies"},
        {"name": "requireCustomTermsOnMagicLink", "type": "boolean", "description": "Require custom terms on magic-link login"},
        {"name": "enduserDisplayName", "type": "string", "description": "Term used for endusers (e.g. 'Member', 'Client')"},
        {"name": "bedrockAIAllowed", "type": "boolean", "description": "Enable Bedrock AI features"},
        {
            "name": "settings",
            "type": "object",
            "description": (
                "Nested sections: dashboard, endusers (customFields, builtinFields, tags, call recording), tickets, "
                "calendar (dayStart, dayEnd, cancelReasons), users, integrations, interface, timeTracking"
            ),
        },
        {
            "name": "portalSettings",
            "type": "object",
            "description": "Nested patient portal sections: authentication, communication, documents, menu items",
        },
        {"name": "callForwardingNumber", "type": "string", "description": "Phone number calls are forwarded to"},
        {"name": "customAutoreplyMessage", "type": "string", "description": "Auto-reply for incoming communications"},
        {"name": "customVoicemailText", "type": "string", "description": "Voicemail greeting text"},
        {"name": "customZoomEmailSubject", "type": "string", "description": "Subject of Zoom invitation emails"},
        {"name": "customZoomEmailTemplate", "type": "string", "description": "Body of Zoom invitation emails"},
        {"name": "customZoomSMSTemplate", "type": "string", "description": "SMS text for Zoom notifications"},
        {"name": "zendeskSettings", "type": "object", "description": "Zendesk priorityGroups and resolution field settings"},
    ],
}

# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

RESOURCE_CATALOG: dict[str, dict[str, Any]] = {
    c["resource"]: c
    for c in (
        _FORMS,
        _FORM_FIELDS,
        _TEMPLATES,
        _CALENDAR_EVENT_TEMPLATES,
        _APPOINTMENT_LOCATIONS,
        _APPOINTMENT_BOOKING_PAGES,
        _DATABASES,
        _DATABASE_RECORDS,
        _JOURNEYS,
        _AUTOMATION_STEPS,
        _AUTOMATION_TRIGGERS,
        _ORGANIZATIONS,
    )
}
