"""Request execution and bulk operations for mwcall."""

from mwcall.core.batch import (
    BatchResult,
    ItemFailure,
    batch_operation,
    series_batch_operation,
)
from mwcall.core.client import ApiClient
from mwcall.core.context import RequestContext
from mwcall.core.http import (
    DispatchResult,
    PreparedRequest,
    Transport,
    decode_response,
    get_timeout_config,
    use_multipart,
)
from mwcall.core.paging import (
    continued_query,
    continued_query_gen,
    mass_query,
    mass_query_gen,
)
from mwcall.core.params import (
    FileUpload,
    NormalizedParams,
    merge_params,
    normalize_params,
)
from mwcall.core.retry import (
    Decision,
    RetryAction,
    classify_remote_error,
    classify_response,
    get_retry_after_delay,
    should_retry_transport,
)
from mwcall.core.shutoff import EmergencyShutoff

__all__ = [
    # client
    "ApiClient",
    "RequestContext",
    # params
    "FileUpload",
    "NormalizedParams",
    "normalize_params",
    "merge_params",
    # http
    "Transport",
    "DispatchResult",
    "PreparedRequest",
    "decode_response",
    "get_timeout_config",
    "use_multipart",
    # retry
    "RetryAction",
    "Decision",
    "classify_response",
    "classify_remote_error",
    "get_retry_after_delay",
    "should_retry_transport",
    # batch
    "BatchResult",
    "ItemFailure",
    "batch_operation",
    "series_batch_operation",
    # paging
    "continued_query",
    "continued_query_gen",
    "mass_query",
    "mass_query_gen",
    # shutoff
    "EmergencyShutoff",
]
