from sellfast.wizard.catalog import (  # noqa: F401
    CatalogBrand,
    CatalogCategory,
    CatalogFetchers,
    CatalogItem,
    CategorySpecification,
)
from sellfast.wizard.context import AuthEvents, SessionUser, WizardContext, page_context, widget_context  # noqa: F401
from sellfast.wizard.draft import ListingDraft  # noqa: F401
from sellfast.wizard.persistence import (  # noqa: F401
    DraftConflictError,
    FilePersistence,
    MemoryPersistence,
    ProgressPersistence,
    RedisPersistence,
)
from sellfast.wizard.steps import Step, StepKind, resolve_steps  # noqa: F401
from sellfast.wizard.store import ProgressStore  # noqa: F401
from sellfast.wizard.submission import SubmissionOutcome, SubmissionResult  # noqa: F401
from sellfast.wizard.transport import HttpClient, HttpResult, MarketplaceHttpClient  # noqa: F401
from sellfast.wizard.wizard import ListingWizard  # noqa: F401
