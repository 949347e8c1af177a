from puppet_master.http.request_builder import RequestBuilder, encode_query, job_path
from puppet_master.http.response import interpret_response, open_response

__all__ = ["RequestBuilder", "encode_query", "interpret_response", "job_path", "open_response"]
