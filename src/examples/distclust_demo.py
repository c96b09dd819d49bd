"""
Demo of the distclust solvers.

This example shows how to:
1. Build a distance matrix from synthetic blobs
2. Cluster it with Affinity Propagation, k-medoids and spectral clustering
3. Match the clusters to the ground truth with the Hungarian solver
   and classify new points against the clustered ones
4. Score outliers, batch and incrementally
5. Find a path on a grid with A* and evolve bit strings with a genetic algorithm
"""

import math

import torch

# Add parent directory to path for imports
import sys
sys.path.append('..')

from distclust import (
    CrossOver,
    FitnessThreshold,
    GenerationCounter,
    GenerationStrategy,
    IterativeKNN,
    SpectralClustering,
    affinity_propagation,
    astar,
    compute_lof,
    genetic,
    hungarian,
    k_nearest_neighbors,
    kmedoids,
    pairwise_distances,
)


def generate_blobs(n_points_per_cluster=40, n_clusters=3, spread=10.0, noise_level=1.0):
    """Gaussian blobs on a circle, plus one isolated point appended last."""
    torch.manual_seed(42)

    data_list = []
    true_labels = []
    for k in range(n_clusters):
        angle = torch.tensor(2 * math.pi * k / n_clusters)
        center = spread * torch.stack([torch.cos(angle), torch.sin(angle)])
        data_list.append(center + noise_level * torch.randn(n_points_per_cluster, 2))
        true_labels.extend([k] * n_points_per_cluster)

    data_list.append(torch.tensor([[4 * spread, 4 * spread]]))
    true_labels.append(n_clusters)

    X = torch.cat(data_list, dim=0).double()
    return X, torch.tensor(true_labels)


def matched_accuracy(true_labels, pred_labels):
    """Accuracy after the best one-to-one matching of predicted and true clusters."""
    _, pred_ids = torch.unique(pred_labels, return_inverse=True)
    K = int(max(pred_ids.max().item(), true_labels.max().item())) + 1
    overlap = torch.zeros(K, K, dtype=torch.float64)
    for p, t in zip(pred_ids.tolist(), true_labels.tolist()):
        overlap[p, t] += 1
    cost, _ = hungarian(-overlap)
    return -cost / len(true_labels)


def clustering_demo(X, true_labels, D):
    print("Fitting Affinity Propagation...")
    prototypes, labels = affinity_propagation(D, preference='medium', damping=0.7,
                                              max_iter=200, verbose=1)
    print(f"  {len(prototypes)} prototypes: {prototypes}")
    print(f"  Matched accuracy: {matched_accuracy(true_labels, torch.tensor(labels)):.3f}")

    print("\nFitting k-medoids with PAM...")
    result = kmedoids(D, n_clusters=4, init='pam', update='pam')
    print(f"  Medoids: {result.medoids}")
    print(f"  Matched accuracy: {matched_accuracy(true_labels, torch.tensor(result.labels)):.3f}")

    database = {}
    for i, label in enumerate(result.labels):
        database.setdefault(label, []).append(X[i])
    query = X[0] + 0.1
    vote = k_nearest_neighbors(query, database, 5, lambda a, b: torch.dist(a, b).item())
    print(f"  A point near element 0 is classified in cluster {vote.label}")

    print("\nSpectral clustering with local scale...")
    sc = SpectralClustering.from_local_scale(D, sigma_neighborhood=7)
    eigenvalues = sc.eigenvalues()
    print(f"  Leading eigenvalues: {[round(v, 4) for v in eigenvalues[:6]]}")
    n_clusters = sc.estimate_cluster_number(0.999) - 1
    print(f"  Estimated number of clusters: {n_clusters}")

    Y = sc.project_data(n_clusters, normalize=True)
    prototypes, labels = affinity_propagation(pairwise_distances(Y), damping=0.9, max_iter=200)
    print(f"  Clusters in the embedding: {len(prototypes)}")


def outlier_demo(X, D):
    print("\nOutlier scores (k=5)...")
    lof = compute_lof(D, 5)
    top = sorted(range(len(lof)), key=lambda i: -lof[i])[:3]
    print(f"  Highest LOF: {[(i, round(lof[i], 2)) for i in top]}")

    knn = IterativeKNN(5, lambda a, b: torch.dist(a, b).item(), fast_min=30)
    for x in X:
        knn.fast_add(x)
    streamed = knn.lof()
    print(f"  Streamed LOF of the last point: {streamed[-1]:.2f} "
          f"({knn.n_distance_calls_} distance computations)")


def search_demo():
    print("\nA* on a 10x10 grid with a wall...")
    walls = {(5, y) for y in range(9)}

    def neighbors(cell):
        x, y = cell
        candidates = [(x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)]
        return [c for c in candidates
                if 0 <= c[0] < 10 and 0 <= c[1] < 10 and c not in walls]

    path = astar((0, 0), (9, 0),
                 step_cost=lambda a, b: 1.0,
                 heuristic=lambda a, goal: abs(a[0] - goal[0]) + abs(a[1] - goal[1]),
                 neighbors=neighbors)
    print(f"  Path length: {len(path) - 1} steps")

    print("\nGenetic algorithm on 16-bit strings...")
    target = [1, 0] * 8

    def evaluate(genotype):
        return float(sum(a != b for a, b in zip(genotype, target)))

    crossover = CrossOver()

    def breed(a, b, generator):
        c1, c2 = crossover(a, b, generator)
        pos = int(torch.randint(0, len(c1), (1,), generator=generator).item())
        c1[pos] = 1 - c1[pos]
        return c1, c2

    generator = torch.Generator().manual_seed(0)
    start = [torch.randint(0, 2, (16,), generator=generator).tolist() for _ in range(20)]
    threshold = FitnessThreshold(0.5)
    counter = GenerationCounter(200)
    population = genetic(start, breed, evaluate,
                         stop=lambda pop: threshold(pop) or counter(pop),
                         strategy=GenerationStrategy.KEEP_BEST_PARENTS_AND_CHILDREN,
                         random_state=generator, verbose=1)
    print(f"  Best individual: {population[0][1]} (fitness {population[0][0]})")


def main():
    """Run the demo."""
    print("=== distclust Demo ===\n")

    X, true_labels = generate_blobs()
    D = pairwise_distances(X)
    print(f"Data shape: {tuple(X.shape)}\n")

    clustering_demo(X, true_labels, D)
    outlier_demo(X, D)
    search_demo()


if __name__ == "__main__":
    main()
