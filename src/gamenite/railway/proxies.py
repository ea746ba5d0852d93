from gamenite.railway.client import GraphQLClient

GET_TCP_PROXIES_QUERY = """
query GetTcpProxies($environmentId: String!, $serviceId: String!) {
  tcpProxies(environmentId: $environmentId, serviceId: $serviceId) {
    domain
    proxyPort
    serviceId
  }
}
"""

CREATE_TCP_PROXY_MUTATION = """
mutation TcpProxyCreate($input: TCPProxyCreateInput!) {
  tcpProxyCreate(input: $input) {
    domain
    proxyPort
    serviceId
  }
}
"""


def get_tcp_proxies(client: GraphQLClient, environment_id: str, service_id: str) -> list[dict]:
    data = client.execute(GET_TCP_PROXIES_QUERY, {
        "environmentId": environment_id,
        "serviceId": service_id,
    })
    return data.get("tcpProxies") or []


def create_tcp_proxy(
    client: GraphQLClient, *, environment_id: str, service_id: str, application_port: int,
) -> dict:
    data = client.execute(CREATE_TCP_PROXY_MUTATION, {"input": {
        "environmentId": environment_id,
        "serviceId": service_id,
        "applicationPort": application_port,
    }})
    return data.get("tcpProxyCreate") or {}
