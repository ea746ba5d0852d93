from gamenite.railway.client import GraphQLClient

GET_PROJECT_VOLUMES_QUERY = """
query GetProjectVolumes($projectId: String!) {
  project(id: $projectId) {
    volumes {
      edges {
        node {
          volumeInstances {
            edges {
              node {
                serviceId
                volumeId
              }
            }
          }
        }
      }
    }
  }
}
"""

DELETE_VOLUME_MUTATION = """
mutation DeleteVolume($volumeId: String!) {
  volumeDelete(volumeId: $volumeId)
}
"""

CREATE_VOLUME_MUTATION = """
mutation VolumeCreate($input: VolumeCreateInput!) {
  volumeCreate(input: $input) {
    id
  }
}
"""


def find_service_volume_ids(client: GraphQLClient, project_id: str, service_id: str) -> list[str]:
    """Return distinct volume IDs with an instance bound to the given service."""
    data = client.execute(GET_PROJECT_VOLUMES_QUERY, {"projectId": project_id})
    volumes = ((data.get("project") or {}).get("volumes") or {}).get("edges") or []
    result = []
    for volume_edge in volumes:
        instances = (volume_edge.get("node") or {}).get("volumeInstances") or {}
        for instance_edge in instances.get("edges") or []:
            node = instance_edge.get("node") or {}
            volume_id = node.get("volumeId")
            if node.get("serviceId") == service_id and volume_id and volume_id not in result:
                result.append(volume_id)
    return result


def delete_volume(client: GraphQLClient, volume_id: str) -> None:
    client.execute(DELETE_VOLUME_MUTATION, {"volumeId": volume_id})


def create_volume(
    client: GraphQLClient, *, project_id: str, environment_id: str,
    service_id: str, mount_path: str,
) -> str:
    data = client.execute(CREATE_VOLUME_MUTATION, {"input": {
        "projectId": project_id,
        "environmentId": environment_id,
        "serviceId": service_id,
        "mountPath": mount_path,
    }})
    return (data.get("volumeCreate") or {}).get("id", "")
